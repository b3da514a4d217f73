"""
ZCP Verify - ZeroCopy attestation verification

Decides whether to trust statements signed by ZeroCopy enclaves and whether
their attached policy proofs satisfy a caller's trading policy.

Core Components:
- Attestation records: the `.zcp` wire format
- Signature verification: secp256k1 ECDSA over a canonical payload digest
- Policy proof checks: receipt presence, image id, checked properties
- Attestation gate: one accept/reject decision per attestation
"""

__version__ = "0.1.0"
__author__ = "ZeroCopy Team"

from zcp.core.attestation import Attestation, PolicyProof
from zcp.core.gate import AttestationGate, TrustDecision
from zcp.core.properties import get_max_leverage, has_property, parse_property
from zcp.core.trust_store import TrustStore
from zcp.core.verifier import verify_attestation, verify_policy_proof
from zcp.core.version import get_version_tuple

__all__ = [
    "Attestation",
    "PolicyProof",
    "AttestationGate",
    "TrustDecision",
    "TrustStore",
    "verify_attestation",
    "verify_policy_proof",
    "parse_property",
    "has_property",
    "get_max_leverage",
    "get_version_tuple",
]
