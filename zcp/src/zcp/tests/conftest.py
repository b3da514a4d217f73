"""
Test Configuration and Fixtures

Provides:
- Signing keypairs
- Signed attestations with and without policy proofs
- Configuration isolated from the caller's environment
"""

import sys
from pathlib import Path
from typing import Generator

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


ZCP_ENV_VARS = (
    "ZCP_TRUSTED_PUBKEYS",
    "ZCP_EXPECTED_IMAGE_ID",
    "ZCP_REQUIRED_PROPERTIES",
    "ZCP_REQUIRE_POLICY_PROOF",
    "ZCP_MIN_VERSION",
    "LOG_LEVEL",
    "LOG_JSON",
)


@pytest.fixture
def test_keypair():
    """Generate a test keypair."""
    from zcp.core.crypto import generate_keypair
    return generate_keypair()


@pytest.fixture
def other_keypair():
    """A second, unrelated keypair."""
    from zcp.core.crypto import generate_keypair
    return generate_keypair()


@pytest.fixture
def signed_attestation(test_keypair):
    """A validly signed attestation without a policy proof."""
    from zcp.testing.vectors import make_attestation
    return make_attestation(keypair=test_keypair)


@pytest.fixture
def proven_attestation(test_keypair):
    """A validly signed attestation carrying the default policy proof."""
    from zcp.testing.vectors import make_attestation
    return make_attestation(keypair=test_keypair, with_policy_proof=True)


@pytest.fixture
def clean_env(monkeypatch) -> Generator[None, None, None]:
    """Clear ZCP settings from the environment and the config cache."""
    from zcp.config import reset_config

    for name in ZCP_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def attestation_file(tmp_path, proven_attestation) -> Path:
    """A proven attestation written to disk."""
    path = tmp_path / "attestation.zcp"
    path.write_text(proven_attestation.to_json(), encoding="utf-8")
    return path
