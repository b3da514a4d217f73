"""
Attestation and Policy Proof Verification

Two independent checks over an Attestation:

1. verify_attestation(): is the payload signed by the enclave key?
   The signed digest is SHA-256 over the canonical payload encoding
   (see zcp.core.crypto.canonicalize_payload); the signature is DER ECDSA
   over secp256k1. Only a boolean is exposed. A malformed key, a malformed
   signature and a tampered payload all look the same to the caller so the
   result cannot be used as an oracle.

2. verify_policy_proof(): does the attached policy proof have the expected
   shape, image id and checked properties? The receipt itself is only
   checked for presence; its cryptographic validity belongs to the proof
   system's own verifier.

Both functions are pure and never raise.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from zcp.core.attestation import Attestation
from zcp.core.crypto import (
    CRYPTO_ERRORS,
    decode_hex,
    decode_public_key,
    payload_digest,
    verify_digest,
)
from zcp.core.errors import FailureKind
from zcp.core.properties import parse_property
from zcp.core.trust_store import TrustStore

logger = logging.getLogger(__name__)

# Hostile records can fail anywhere between attribute access and hashing.
_VERIFY_ERRORS = CRYPTO_ERRORS + (AttributeError, RecursionError)


@dataclass(frozen=True)
class PolicyVerificationResult:
    """Outcome of verify_policy_proof()."""
    valid: bool
    error: Optional[str] = None
    checked_properties: Optional[Tuple[str, ...]] = None
    timestamp_ms: Optional[int] = None
    failure: Optional[FailureKind] = None

    def __bool__(self) -> bool:
        return self.valid

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "error": self.error,
            "checked_properties": (
                list(self.checked_properties) if self.checked_properties is not None else None
            ),
            "timestamp_ms": self.timestamp_ms,
            "failure": self.failure.value if self.failure else None,
        }

    @classmethod
    def failed(cls, failure: FailureKind, error: str) -> "PolicyVerificationResult":
        return cls(valid=False, error=error, failure=failure)


def verify_attestation(attestation: Attestation, trust_store: Optional[TrustStore] = None) -> bool:
    """
    Verify the enclave signature over the attestation payload.

    Args:
        attestation: The attestation to check
        trust_store: If given, the signing key must also be trusted

    Returns:
        True only if the key is a valid secp256k1 point, the signature is
        valid DER and it verifies against the digest of the current payload
    """
    try:
        public_key = decode_public_key(attestation.enclave_pubkey)
        signature = decode_hex(attestation.signature)
        digest = payload_digest(attestation.payload)
    except _VERIFY_ERRORS as e:
        logger.debug("Attestation rejected before signature check: %s", type(e).__name__)
        return False

    if not verify_digest(digest, signature, public_key):
        logger.debug("Attestation signature does not match payload digest")
        return False

    if trust_store is not None and not trust_store.is_trusted(attestation.enclave_pubkey):
        logger.debug("Attestation signed by a key outside the trust store")
        return False

    return True


def verify_policy_proof(
    attestation: Attestation,
    expected_image_id: Optional[str] = None,
    required_properties: Optional[Iterable[str]] = None,
) -> PolicyVerificationResult:
    """
    Check the policy proof attached to an attestation.

    Checks run in order and stop at the first failure:
    proof present, receipt non-empty, image id, required properties.

    Args:
        attestation: The attestation carrying the proof
        expected_image_id: Enclave program the proof must come from
        required_properties: Property names that must all have been checked

    Returns:
        PolicyVerificationResult; on success checked_properties holds the
        proof's entries verbatim
    """
    proof = getattr(attestation, "policy_proof", None)
    if proof is None:
        return PolicyVerificationResult.failed(
            FailureKind.POLICY_PROOF_MISSING, "Policy proof missing"
        )

    if not proof.receipt_hex:
        return PolicyVerificationResult.failed(FailureKind.EMPTY_RECEIPT, "Empty receipt")

    if expected_image_id is not None and proof.image_id != expected_image_id:
        return PolicyVerificationResult.failed(
            FailureKind.IMAGE_ID_MISMATCH,
            f"Image ID mismatch: expected {expected_image_id}, got {proof.image_id}",
        )

    if required_properties is not None:
        if isinstance(required_properties, str):
            required_properties = [required_properties]
        checked_names = {parse_property(p).name for p in proof.checked_properties}
        for name in required_properties:
            if str(name) not in checked_names:
                return PolicyVerificationResult.failed(
                    FailureKind.MISSING_REQUIRED_PROPERTY,
                    f"Missing required property: {name}",
                )

    return PolicyVerificationResult(
        valid=True,
        checked_properties=tuple(proof.checked_properties),
        timestamp_ms=proof.timestamp_ms,
    )


def has_policy_proof(attestation: Attestation) -> bool:
    return getattr(attestation, "policy_proof", None) is not None
