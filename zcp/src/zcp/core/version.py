"""
Attestation schema version negotiation.

Versions are "major.minor" with both parts non-negative integers. Nothing
in the core branches on the version; callers use these helpers to gate
features.
"""

import re
from typing import Optional, Tuple

from zcp.core.attestation import Attestation

VersionTuple = Tuple[int, int]

_VERSION_RE = re.compile(r"(\d+)\.(\d+)", re.ASCII)

# First schema revision that carries policy_proof.
POLICY_PROOF_VERSION: VersionTuple = (1, 1)


def parse_version(text: str) -> Optional[VersionTuple]:
    """Parse "1.1" into (1, 1); anything else gives None."""
    if not isinstance(text, str):
        return None
    match = _VERSION_RE.fullmatch(text)
    if match is None:
        return None
    try:
        return int(match.group(1)), int(match.group(2))
    except ValueError:
        # digit count beyond the interpreter's int conversion limit
        return None


def get_version_tuple(attestation: Attestation) -> Optional[VersionTuple]:
    return parse_version(getattr(attestation, "version", None))


def supports_version(attestation: Attestation, minimum: VersionTuple) -> bool:
    """True if the attestation's schema is at least `minimum`."""
    version = get_version_tuple(attestation)
    return version is not None and version >= minimum


def supports_policy_proofs(attestation: Attestation) -> bool:
    return supports_version(attestation, POLICY_PROOF_VERSION)
