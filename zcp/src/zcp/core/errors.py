"""
Error types for ZCP verification.

Verification itself never raises: every check reports a FailureKind
through its return value. Exceptions are reserved for the seams where
records are decoded or configuration is loaded.
"""

from enum import Enum


class ZCPError(Exception):
    """Base class for all ZCP errors."""
    pass


class AttestationFormatError(ZCPError):
    """Raised when an attestation record cannot be decoded."""

    def __init__(self, message: str, field_name: str = ""):
        super().__init__(message)
        self.field_name = field_name


class FailureKind(Enum):
    """Why an attestation was not trusted."""
    SIGNATURE_INVALID = "signature_invalid"
    UNTRUSTED_KEY = "untrusted_key"
    POLICY_PROOF_MISSING = "policy_proof_missing"
    EMPTY_RECEIPT = "empty_receipt"
    IMAGE_ID_MISMATCH = "image_id_mismatch"
    MISSING_REQUIRED_PROPERTY = "missing_required_property"
    VERSION_PARSE_ERROR = "version_parse_error"
    UNSUPPORTED_VERSION = "unsupported_version"
    MALFORMED_RECORD = "malformed_record"
