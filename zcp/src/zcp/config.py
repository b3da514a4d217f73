"""
ZCP Configuration

Environment-based configuration for services that gate on attestations.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from zcp.core.errors import ZCPError
from zcp.core.trust_store import TrustStore
from zcp.core.version import parse_version

logger = logging.getLogger(__name__)


class ConfigurationError(ZCPError):
    """Raised when configuration is invalid."""
    pass


def _env_list(name: str) -> List[str]:
    raw = os.getenv(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass
class ZCPConfig:
    """Configuration for attestation verification."""

    # Trust
    trusted_pubkeys: List[str] = field(default_factory=lambda: _env_list("ZCP_TRUSTED_PUBKEYS"))

    # Policy requirements
    expected_image_id: Optional[str] = field(
        default_factory=lambda: os.getenv("ZCP_EXPECTED_IMAGE_ID") or None
    )
    required_properties: List[str] = field(
        default_factory=lambda: _env_list("ZCP_REQUIRED_PROPERTIES")
    )
    require_policy_proof: bool = field(
        default_factory=lambda: _env_bool("ZCP_REQUIRE_POLICY_PROOF")
    )
    min_version_text: str = field(default_factory=lambda: os.getenv("ZCP_MIN_VERSION", ""))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_json: bool = field(default_factory=lambda: _env_bool("LOG_JSON", "true"))

    # Validation
    _validated: bool = field(default=False, repr=False)

    @property
    def min_version(self) -> Optional[Tuple[int, int]]:
        if not self.min_version_text:
            return None
        return parse_version(self.min_version_text)

    def trust_store(self) -> Optional[TrustStore]:
        """TrustStore of the configured keys, or None to accept any valid signer."""
        if not self.trusted_pubkeys:
            return None
        try:
            return TrustStore(self.trusted_pubkeys)
        except ValueError as e:
            raise ConfigurationError(f"ZCP_TRUSTED_PUBKEYS: {e}") from e

    def validate(self) -> List[str]:
        """Validate configuration and return list of warnings."""
        warnings = []

        if self.min_version_text and self.min_version is None:
            raise ConfigurationError(
                f"ZCP_MIN_VERSION must look like '1.1', got {self.min_version_text!r}"
            )

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Unknown LOG_LEVEL: {self.log_level!r}")

        # Raises ConfigurationError on a bad key.
        self.trust_store()

        if not self.trusted_pubkeys:
            warnings.append(
                "ZCP_TRUSTED_PUBKEYS is not set. Any validly signed attestation will be trusted."
            )

        if self.required_properties and not self.expected_image_id:
            warnings.append(
                "Required properties are checked without ZCP_EXPECTED_IMAGE_ID. "
                "Any enclave program may claim them."
            )

        for warning in warnings:
            logger.warning(warning)

        self._validated = True
        return warnings


_config_instance: Optional[ZCPConfig] = None


def get_config() -> ZCPConfig:
    """Get the current configuration (cached singleton)."""
    global _config_instance
    if _config_instance is None:
        _config_instance = ZCPConfig()
    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration so the environment is re-read."""
    global _config_instance
    _config_instance = None
