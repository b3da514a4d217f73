"""
Tests for environment-based configuration.
"""

import pytest

from zcp.config import ConfigurationError, ZCPConfig, get_config, reset_config
from zcp.core.errors import FailureKind
from zcp.core.gate import AttestationGate
from zcp.testing.vectors import TEST_IMAGE_ID


@pytest.mark.usefixtures("clean_env")
class TestZCPConfig:
    """Tests for ZCPConfig."""

    def test_defaults(self):
        config = ZCPConfig()
        assert config.trusted_pubkeys == []
        assert config.expected_image_id is None
        assert config.required_properties == []
        assert config.require_policy_proof is False
        assert config.min_version is None
        assert config.log_level == "INFO"
        assert config.trust_store() is None

    def test_reads_environment(self, monkeypatch, test_keypair):
        monkeypatch.setenv("ZCP_TRUSTED_PUBKEYS", f" {test_keypair.public_key_hex} , ")
        monkeypatch.setenv("ZCP_EXPECTED_IMAGE_ID", TEST_IMAGE_ID)
        monkeypatch.setenv("ZCP_REQUIRED_PROPERTIES", "MaxLeverage, AllowedPairs")
        monkeypatch.setenv("ZCP_REQUIRE_POLICY_PROOF", "true")
        monkeypatch.setenv("ZCP_MIN_VERSION", "1.1")

        config = ZCPConfig()
        assert config.trusted_pubkeys == [test_keypair.public_key_hex]
        assert config.expected_image_id == TEST_IMAGE_ID
        assert config.required_properties == ["MaxLeverage", "AllowedPairs"]
        assert config.require_policy_proof is True
        assert config.min_version == (1, 1)
        assert test_keypair.public_key_hex in config.trust_store()

    def test_validate_warns_without_trusted_keys(self):
        warnings = ZCPConfig().validate()
        assert any("ZCP_TRUSTED_PUBKEYS" in w for w in warnings)

    def test_validate_warns_on_properties_without_image(self, monkeypatch):
        monkeypatch.setenv("ZCP_REQUIRED_PROPERTIES", "MaxLeverage")
        warnings = ZCPConfig().validate()
        assert any("ZCP_EXPECTED_IMAGE_ID" in w for w in warnings)

    def test_validate_rejects_bad_version(self, monkeypatch):
        monkeypatch.setenv("ZCP_MIN_VERSION", "one")
        with pytest.raises(ConfigurationError):
            ZCPConfig().validate()

    def test_validate_rejects_bad_key(self, monkeypatch):
        monkeypatch.setenv("ZCP_TRUSTED_PUBKEYS", "cafebabe")
        config = ZCPConfig()
        with pytest.raises(ConfigurationError):
            config.validate()
        with pytest.raises(ConfigurationError):
            config.trust_store()

    def test_validate_rejects_bad_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigurationError):
            ZCPConfig().validate()

    def test_get_config_is_cached(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv("ZCP_EXPECTED_IMAGE_ID", "changed")
        assert get_config() is first
        reset_config()
        assert get_config().expected_image_id == "changed"


@pytest.mark.usefixtures("clean_env")
class TestGateFromConfig:
    """Tests for AttestationGate.from_config."""

    def test_gate_uses_config(self, monkeypatch, test_keypair, proven_attestation, other_keypair):
        monkeypatch.setenv("ZCP_TRUSTED_PUBKEYS", test_keypair.public_key_hex)
        monkeypatch.setenv("ZCP_EXPECTED_IMAGE_ID", TEST_IMAGE_ID)
        monkeypatch.setenv("ZCP_REQUIRED_PROPERTIES", "MaxLeverage")

        gate = AttestationGate.from_config(ZCPConfig())
        assert gate.required_properties == ("MaxLeverage",)
        assert gate.evaluate(proven_attestation).trusted

        monkeypatch.setenv("ZCP_TRUSTED_PUBKEYS", other_keypair.public_key_hex)
        gate = AttestationGate.from_config(ZCPConfig())
        assert gate.evaluate(proven_attestation).failure == FailureKind.UNTRUSTED_KEY

    def test_gate_defaults_to_global_config(self, monkeypatch, signed_attestation):
        monkeypatch.setenv("ZCP_REQUIRE_POLICY_PROOF", "1")
        gate = AttestationGate.from_config()
        assert gate.evaluate(signed_attestation).failure == FailureKind.POLICY_PROOF_MISSING
