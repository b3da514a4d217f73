"""
Tests for the ZCP CLI

Tests command structure, exit codes and output.
"""

import dataclasses
import json
import logging

import pytest
import structlog
from click.testing import CliRunner

from zcp.cli.main import EXIT_BAD_INPUT, EXIT_REJECTED, EXIT_TRUSTED, cli
from zcp.core.attestation import Attestation
from zcp.monitoring.logging import JSONFormatter
from zcp.testing.vectors import TEST_IMAGE_ID, deeply_nested_json, make_attestation

QUIET = ["--log-level", "ERROR"]


@pytest.fixture(autouse=True)
def restore_logging():
    """The CLI reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    structlog.reset_defaults()


@pytest.fixture
def runner():
    """Create a CLI test runner."""
    return CliRunner()


def write(tmp_path, attestation, name="attestation.zcp"):
    path = tmp_path / name
    path.write_text(attestation.to_json(), encoding="utf-8")
    return str(path)


@pytest.mark.usefixtures("clean_env")
class TestCLIStructure:
    """Tests for CLI command structure."""

    def test_cli_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "ZCP CLI" in result.output
        for command in ("verify", "inspect", "sample"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_verify_help(self, runner):
        result = runner.invoke(cli, ["verify", "--help"])
        assert result.exit_code == 0
        assert "--image-id" in result.output
        assert "--require" in result.output
        assert "--trusted-key" in result.output


@pytest.mark.usefixtures("clean_env")
class TestLogFormat:
    """The log format follows LOG_JSON unless a flag overrides it."""

    def _formatter(self):
        return logging.getLogger().handlers[0].formatter

    def test_log_json_from_environment(self, runner, monkeypatch):
        monkeypatch.setenv("LOG_JSON", "false")
        result = runner.invoke(cli, QUIET + ["sample"])
        assert result.exit_code == 0
        assert not isinstance(self._formatter(), JSONFormatter)

    def test_log_json_default(self, runner):
        result = runner.invoke(cli, QUIET + ["sample"])
        assert result.exit_code == 0
        assert isinstance(self._formatter(), JSONFormatter)

    def test_flag_overrides_environment(self, runner, monkeypatch):
        monkeypatch.setenv("LOG_JSON", "true")
        result = runner.invoke(cli, QUIET + ["--no-log-json", "sample"])
        assert result.exit_code == 0
        assert not isinstance(self._formatter(), JSONFormatter)


@pytest.mark.usefixtures("clean_env")
class TestVerifyCommand:
    """Tests for `zcp verify`."""

    def test_trusted(self, runner, attestation_file):
        result = runner.invoke(cli, QUIET + ["verify", str(attestation_file)])
        assert result.exit_code == EXIT_TRUSTED
        assert "TRUSTED" in result.output
        assert "MaxLeverage(5)" in result.output

    def test_requirements_satisfied(self, runner, attestation_file, test_keypair):
        result = runner.invoke(cli, QUIET + [
            "verify", str(attestation_file),
            "--image-id", TEST_IMAGE_ID,
            "--require", "MaxLeverage",
            "--require", "AllowedPairs",
            "--trusted-key", test_keypair.public_key_hex,
            "--min-version", "1.1",
        ])
        assert result.exit_code == EXIT_TRUSTED

    def test_image_mismatch(self, runner, attestation_file):
        result = runner.invoke(cli, QUIET + ["verify", str(attestation_file), "--image-id", "other"])
        assert result.exit_code == EXIT_REJECTED
        assert "REJECTED" in result.output
        assert "Image ID mismatch" in result.output

    def test_missing_property(self, runner, attestation_file):
        result = runner.invoke(cli, QUIET + ["verify", str(attestation_file), "--require", "MaxOrderSize"])
        assert result.exit_code == EXIT_REJECTED
        assert "Missing required property: MaxOrderSize" in result.output

    def test_untrusted_key(self, runner, attestation_file, other_keypair):
        result = runner.invoke(cli, QUIET + [
            "verify", str(attestation_file), "--trusted-key", other_keypair.public_key_hex,
        ])
        assert result.exit_code == EXIT_REJECTED

    def test_tampered(self, runner, tmp_path, proven_attestation):
        tampered = dataclasses.replace(proven_attestation, payload={"action": "withdraw"})
        result = runner.invoke(cli, QUIET + ["verify", write(tmp_path, tampered)])
        assert result.exit_code == EXIT_REJECTED
        assert "Signature verification failed" in result.output

    def test_require_proof(self, runner, tmp_path):
        path = write(tmp_path, make_attestation())
        result = runner.invoke(cli, QUIET + ["verify", path, "--require-proof"])
        assert result.exit_code == EXIT_REJECTED
        assert "Policy proof missing" in result.output

    def test_json_output(self, runner, attestation_file):
        result = runner.invoke(cli, QUIET + ["verify", str(attestation_file), "--json"])
        assert result.exit_code == EXIT_TRUSTED
        data = json.loads(result.output)
        assert data["trusted"] is True
        assert data["version"] == [1, 1]

    def test_use_config(self, runner, monkeypatch, attestation_file):
        monkeypatch.setenv("ZCP_EXPECTED_IMAGE_ID", "configured_image")
        result = runner.invoke(cli, QUIET + ["verify", str(attestation_file), "--use-config"])
        assert result.exit_code == EXIT_REJECTED
        assert "configured_image" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, QUIET + ["verify", str(tmp_path / "nope.zcp")])
        assert result.exit_code == EXIT_BAD_INPUT

    def test_malformed_file(self, runner, tmp_path):
        path = tmp_path / "bad.zcp"
        path.write_text('{"version": "1.1"}', encoding="utf-8")
        result = runner.invoke(cli, QUIET + ["verify", str(path)])
        assert result.exit_code == EXIT_BAD_INPUT

    def test_deeply_nested_file(self, runner, tmp_path):
        path = tmp_path / "nested.zcp"
        path.write_text(deeply_nested_json(), encoding="utf-8")
        result = runner.invoke(cli, QUIET + ["verify", str(path)])
        assert result.exit_code == EXIT_BAD_INPUT

    def test_bad_trusted_key_option(self, runner, attestation_file):
        result = runner.invoke(cli, QUIET + ["verify", str(attestation_file), "--trusted-key", "xyz"])
        assert result.exit_code == EXIT_BAD_INPUT

    def test_bad_min_version_option(self, runner, attestation_file):
        result = runner.invoke(cli, QUIET + ["verify", str(attestation_file), "--min-version", "v2"])
        assert result.exit_code == EXIT_BAD_INPUT


@pytest.mark.usefixtures("clean_env")
class TestInspectCommand:
    """Tests for `zcp inspect`."""

    def test_inspect_text(self, runner, attestation_file):
        result = runner.invoke(cli, QUIET + ["inspect", str(attestation_file)])
        assert result.exit_code == 0
        assert f"Policy proof: image {TEST_IMAGE_ID}" in result.output
        assert "MaxLeverage = 5" in result.output
        assert "Max leverage: 5" in result.output

    def test_inspect_json(self, runner, attestation_file):
        result = runner.invoke(cli, QUIET + ["inspect", str(attestation_file), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["version_tuple"] == [1, 1]
        assert data["max_leverage"] == 5
        assert data["allowed_pairs"] == ["BTC-USDT"]
        assert data["properties"][0] == {"name": "MaxLeverage", "args": "5"}
        assert data["fingerprint"].startswith("sha256:")

    def test_inspect_without_proof(self, runner, tmp_path):
        path = write(tmp_path, make_attestation(version="invalid"))
        result = runner.invoke(cli, QUIET + ["inspect", path])
        assert result.exit_code == 0
        assert "Policy proof: none" in result.output
        assert "(unparseable)" in result.output


@pytest.mark.usefixtures("clean_env")
class TestSampleCommand:
    """Tests for `zcp sample`."""

    def test_sample_verifies(self, runner, tmp_path):
        result = runner.invoke(cli, QUIET + ["sample"])
        assert result.exit_code == 0
        attestation = Attestation.from_json(result.output)
        assert attestation.policy_proof is None

        path = tmp_path / "sample.zcp"
        path.write_text(result.output, encoding="utf-8")
        verified = runner.invoke(cli, QUIET + ["verify", str(path)])
        assert verified.exit_code == EXIT_TRUSTED

    def test_sample_with_properties(self, runner):
        result = runner.invoke(cli, QUIET + [
            "sample", "--property", "MaxLeverage(3)", "--image-id", "img-9",
        ])
        assert result.exit_code == 0
        attestation = Attestation.from_json(result.output)
        assert attestation.policy_proof.checked_properties == ("MaxLeverage(3)",)
        assert attestation.policy_proof.image_id == "img-9"
