"""
Attestation Gate

The single accept/reject decision a trading gateway makes for an incoming
attestation. The gate runs, in order:

1. Schema version floor (optional)
2. Enclave signature over the payload
3. Trust store membership of the signing key (optional)
4. Policy proof checks (when a proof is required or any proof
   requirement is configured)

There is no partial trust: any failed step yields trusted=False and the
remaining steps are skipped.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple

from zcp.core.attestation import Attestation, attestation_fingerprint
from zcp.core.errors import AttestationFormatError, FailureKind
from zcp.core.trust_store import TrustStore
from zcp.core.verifier import verify_attestation, verify_policy_proof
from zcp.core.version import VersionTuple, get_version_tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrustDecision:
    """Result of AttestationGate.evaluate()."""
    trusted: bool
    failure: Optional[FailureKind] = None
    error: Optional[str] = None
    checked_properties: Optional[Tuple[str, ...]] = None
    timestamp_ms: Optional[int] = None
    version: Optional[VersionTuple] = None
    fingerprint: Optional[str] = None

    def __bool__(self) -> bool:
        return self.trusted

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trusted": self.trusted,
            "failure": self.failure.value if self.failure else None,
            "error": self.error,
            "checked_properties": (
                list(self.checked_properties) if self.checked_properties is not None else None
            ),
            "timestamp_ms": self.timestamp_ms,
            "version": list(self.version) if self.version else None,
            "fingerprint": self.fingerprint,
        }


@dataclass(frozen=True)
class AttestationGate:
    """Accept/reject policy applied to every attestation."""
    trust_store: Optional[TrustStore] = None
    expected_image_id: Optional[str] = None
    required_properties: Tuple[str, ...] = field(default_factory=tuple)
    require_policy_proof: bool = False
    min_version: Optional[VersionTuple] = None

    @property
    def checks_policy_proof(self) -> bool:
        return (
            self.require_policy_proof
            or self.expected_image_id is not None
            or bool(self.required_properties)
        )

    @classmethod
    def from_config(cls, config=None) -> "AttestationGate":
        """Build a gate from ZCPConfig (the cached global config by default)."""
        if config is None:
            from zcp.config import get_config
            config = get_config()
        return cls(
            trust_store=config.trust_store(),
            expected_image_id=config.expected_image_id,
            required_properties=tuple(config.required_properties),
            require_policy_proof=config.require_policy_proof,
            min_version=config.min_version,
        )

    def evaluate(self, attestation: Attestation) -> TrustDecision:
        """Decide whether to trust an attestation."""
        version = get_version_tuple(attestation)
        try:
            fingerprint = attestation_fingerprint(attestation)
        except (TypeError, ValueError, RecursionError):
            fingerprint = None

        def deny(failure: FailureKind, error: str) -> TrustDecision:
            logger.info(
                "Attestation rejected",
                extra={"failure": failure.value, "fingerprint": fingerprint},
            )
            return TrustDecision(
                trusted=False,
                failure=failure,
                error=error,
                version=version,
                fingerprint=fingerprint,
            )

        if self.min_version is not None:
            if version is None:
                return deny(
                    FailureKind.VERSION_PARSE_ERROR,
                    f"Unparseable schema version: {attestation.version!r}",
                )
            if version < self.min_version:
                return deny(
                    FailureKind.UNSUPPORTED_VERSION,
                    "Unsupported schema version: %d.%d (minimum %d.%d)"
                    % (version + self.min_version),
                )

        if not verify_attestation(attestation):
            return deny(FailureKind.SIGNATURE_INVALID, "Signature verification failed")

        if self.trust_store is not None and not self.trust_store.is_trusted(
            attestation.enclave_pubkey
        ):
            return deny(FailureKind.UNTRUSTED_KEY, "Enclave key is not trusted")

        checked_properties = None
        timestamp_ms = None
        if self.checks_policy_proof:
            result = verify_policy_proof(
                attestation,
                expected_image_id=self.expected_image_id,
                required_properties=self.required_properties or None,
            )
            if not result.valid:
                return deny(result.failure, result.error)
            checked_properties = result.checked_properties
            timestamp_ms = result.timestamp_ms
        elif attestation.policy_proof is not None:
            checked_properties = tuple(attestation.policy_proof.checked_properties)
            timestamp_ms = attestation.policy_proof.timestamp_ms

        logger.info("Attestation trusted", extra={"fingerprint": fingerprint})
        return TrustDecision(
            trusted=True,
            checked_properties=checked_properties,
            timestamp_ms=timestamp_ms,
            version=version,
            fingerprint=fingerprint,
        )

    def evaluate_json(self, text: str) -> TrustDecision:
        """Decode a `.zcp` JSON document and evaluate it."""
        try:
            attestation = Attestation.from_json(text)
        except AttestationFormatError as e:
            logger.info("Attestation rejected", extra={"failure": FailureKind.MALFORMED_RECORD.value})
            return TrustDecision(trusted=False, failure=FailureKind.MALFORMED_RECORD, error=str(e))
        return self.evaluate(attestation)


def evaluate_attestation(
    attestation: Attestation,
    trust_store: Optional[TrustStore] = None,
    expected_image_id: Optional[str] = None,
    required_properties: Iterable[str] = (),
    require_policy_proof: bool = False,
) -> TrustDecision:
    """One-shot convenience wrapper around AttestationGate."""
    gate = AttestationGate(
        trust_store=trust_store,
        expected_image_id=expected_image_id,
        required_properties=tuple(required_properties),
        require_policy_proof=require_policy_proof,
    )
    return gate.evaluate(attestation)
