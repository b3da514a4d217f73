"""
ZCP Core Components

Attestation records, signature verification, policy proof checks and the
accept/reject gate built on them.
"""

from zcp.core.attestation import Attestation, PolicyProof, attestation_fingerprint
from zcp.core.crypto import (
    KeyPair,
    canonicalize_payload,
    generate_keypair,
    hash_json,
    payload_digest,
)
from zcp.core.errors import AttestationFormatError, FailureKind, ZCPError
from zcp.core.gate import AttestationGate, TrustDecision, evaluate_attestation
from zcp.core.properties import (
    ParsedProperty,
    find_property,
    get_allowed_pairs,
    get_int_property,
    get_max_leverage,
    has_property,
    parse_properties,
    parse_property,
)
from zcp.core.trust_store import TrustStore
from zcp.core.verifier import (
    PolicyVerificationResult,
    has_policy_proof,
    verify_attestation,
    verify_policy_proof,
)
from zcp.core.version import (
    get_version_tuple,
    parse_version,
    supports_policy_proofs,
    supports_version,
)

__all__ = [
    # Records
    "Attestation",
    "PolicyProof",
    "attestation_fingerprint",
    # Crypto
    "KeyPair",
    "canonicalize_payload",
    "generate_keypair",
    "hash_json",
    "payload_digest",
    # Errors
    "AttestationFormatError",
    "FailureKind",
    "ZCPError",
    # Gate
    "AttestationGate",
    "TrustDecision",
    "evaluate_attestation",
    # Properties
    "ParsedProperty",
    "find_property",
    "get_allowed_pairs",
    "get_int_property",
    "get_max_leverage",
    "has_property",
    "parse_properties",
    "parse_property",
    # Verification
    "TrustStore",
    "PolicyVerificationResult",
    "has_policy_proof",
    "verify_attestation",
    "verify_policy_proof",
    # Versions
    "get_version_tuple",
    "parse_version",
    "supports_policy_proofs",
    "supports_version",
]
