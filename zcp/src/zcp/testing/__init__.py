"""
ZCP Testing Module

Provides signed attestation builders and malformed-input vectors for
exercising verifiers.
"""

from zcp.testing.vectors import (
    DEEP_NESTING,
    DEFAULT_PAYLOAD,
    DEFAULT_PROPERTIES,
    MALFORMED_PUBKEYS,
    MALFORMED_SIGNATURES,
    OVERSIZED_DIGITS,
    OVERSIZED_INT_PROPERTIES,
    OVERSIZED_VERSIONS,
    TEST_IMAGE_ID,
    deeply_nested_json,
    make_attestation,
    make_policy_proof,
)

__all__ = [
    "DEEP_NESTING",
    "DEFAULT_PAYLOAD",
    "DEFAULT_PROPERTIES",
    "MALFORMED_PUBKEYS",
    "MALFORMED_SIGNATURES",
    "OVERSIZED_DIGITS",
    "OVERSIZED_INT_PROPERTIES",
    "OVERSIZED_VERSIONS",
    "TEST_IMAGE_ID",
    "deeply_nested_json",
    "make_attestation",
    "make_policy_proof",
]
