"""
ZCP CLI - Main entry point

Verify and inspect `.zcp` attestation files from the command line.

Exit codes for `zcp verify`:
    0  attestation trusted
    1  attestation rejected
    2  file unreadable or not an attestation
"""

import json
import sys
from pathlib import Path
from typing import Optional

import click

from zcp import __version__
from zcp.config import ConfigurationError, get_config
from zcp.core.attestation import Attestation, attestation_fingerprint
from zcp.core.errors import AttestationFormatError
from zcp.core.gate import AttestationGate
from zcp.core.properties import get_allowed_pairs, get_max_leverage, parse_properties
from zcp.core.trust_store import TrustStore
from zcp.core.version import get_version_tuple, parse_version
from zcp.monitoring.logging import AuditLogger, configure_logging

EXIT_TRUSTED = 0
EXIT_REJECTED = 1
EXIT_BAD_INPUT = 2


def format_json(data: dict, pretty: bool = True) -> str:
    """Format data as JSON."""
    if pretty:
        return json.dumps(data, indent=2, default=str, ensure_ascii=False)
    return json.dumps(data, default=str, ensure_ascii=False)


def load_attestation(path: str) -> Attestation:
    """Read and decode an attestation file, exiting with code 2 on failure."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        click.echo(f"Error: cannot read {path}: {e}", err=True)
        sys.exit(EXIT_BAD_INPUT)
    try:
        return Attestation.from_json(text)
    except AttestationFormatError as e:
        click.echo(f"Error: {path} is not a valid attestation: {e}", err=True)
        sys.exit(EXIT_BAD_INPUT)


# ==================== Main CLI Group ====================

@click.group()
@click.version_option(version=__version__, prog_name="zcp")
@click.option("--log-level", envvar="LOG_LEVEL", default="WARNING", help="Log level")
@click.option(
    "--log-json/--no-log-json",
    default=lambda: get_config().log_json,
    help="Emit logs as JSON (default: LOG_JSON)",
)
@click.pass_context
def cli(ctx, log_level, log_json):
    """ZCP CLI - verify ZeroCopy enclave attestations."""
    ctx.ensure_object(dict)
    configure_logging(level=log_level, json_format=log_json)


# ==================== Verify ====================

@cli.command("verify")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--image-id", default=None, help="Expected enclave image id")
@click.option("--require", "required", multiple=True, help="Property the proof must have checked")
@click.option("--trusted-key", "trusted_keys", multiple=True, help="Trusted enclave public key (hex)")
@click.option("--require-proof", is_flag=True, help="Reject attestations without a policy proof")
@click.option("--min-version", default=None, help="Minimum schema version, e.g. 1.1")
@click.option("--use-config", is_flag=True, help="Start from ZCP_* environment settings")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def verify(file, image_id, required, trusted_keys, require_proof, min_version, use_config, as_json):
    """Verify the signature and policy proof of an attestation FILE."""
    attestation = load_attestation(file)

    try:
        gate = AttestationGate.from_config(get_config()) if use_config else AttestationGate()
        gate = _override_gate(gate, image_id, required, trusted_keys, require_proof, min_version)
    except (ConfigurationError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_BAD_INPUT)

    decision = gate.evaluate(attestation)
    AuditLogger().log_trust_decision(
        trusted=decision.trusted,
        failure=decision.failure.value if decision.failure else None,
        fingerprint=decision.fingerprint,
        source=file,
    )

    if as_json:
        click.echo(format_json(decision.to_dict()))
    elif decision.trusted:
        click.echo("TRUSTED: attestation verified")
        if decision.checked_properties is not None:
            click.echo("Checked properties:")
            for prop in decision.checked_properties:
                click.echo(f"  - {prop}")
    else:
        click.echo(f"REJECTED: {decision.error}")

    sys.exit(EXIT_TRUSTED if decision.trusted else EXIT_REJECTED)


def _override_gate(
    gate: AttestationGate,
    image_id: Optional[str],
    required: tuple,
    trusted_keys: tuple,
    require_proof: bool,
    min_version: Optional[str],
) -> AttestationGate:
    min_version_tuple = gate.min_version
    if min_version is not None:
        min_version_tuple = parse_version(min_version)
        if min_version_tuple is None:
            raise ValueError(f"--min-version must look like '1.1', got {min_version!r}")

    trust_store = gate.trust_store
    if trusted_keys:
        keys = list(trust_store.keys) if trust_store is not None else []
        trust_store = TrustStore(keys + list(trusted_keys))

    return AttestationGate(
        trust_store=trust_store,
        expected_image_id=image_id if image_id is not None else gate.expected_image_id,
        required_properties=tuple(gate.required_properties) + tuple(required),
        require_policy_proof=gate.require_policy_proof or require_proof,
        min_version=min_version_tuple,
    )


# ==================== Inspect ====================

@cli.command("inspect")
@click.argument("file", type=click.Path(dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def inspect_attestation(file, as_json):
    """Show what an attestation FILE declares, without verifying it."""
    attestation = load_attestation(file)
    version = get_version_tuple(attestation)
    pairs = get_allowed_pairs(attestation)
    try:
        fingerprint = attestation_fingerprint(attestation)
    except ValueError:
        fingerprint = None

    info = {
        "version": attestation.version,
        "version_tuple": list(version) if version else None,
        "timestamp": attestation.timestamp,
        "enclave_pubkey": attestation.enclave_pubkey,
        "fingerprint": fingerprint,
        "has_policy_proof": attestation.has_policy_proof,
        "image_id": attestation.policy_proof.image_id if attestation.policy_proof else None,
        "properties": [
            {"name": p.name, "args": p.args} for p in parse_properties(attestation)
        ],
        "max_leverage": get_max_leverage(attestation),
        "allowed_pairs": list(pairs) if pairs is not None else None,
    }

    if as_json:
        click.echo(format_json(info))
        return

    click.echo(f"Version:      {info['version']}" + ("" if version else " (unparseable)"))
    click.echo(f"Timestamp:    {info['timestamp']}")
    click.echo(f"Enclave key:  {info['enclave_pubkey']}")
    click.echo(f"Fingerprint:  {info['fingerprint']}")
    if not attestation.has_policy_proof:
        click.echo("Policy proof: none")
        return
    click.echo(f"Policy proof: image {info['image_id']}")
    for prop in info["properties"]:
        suffix = f" = {prop['args']}" if prop["args"] is not None else ""
        click.echo(f"  - {prop['name']}{suffix}")
    if info["max_leverage"] is not None:
        click.echo(f"Max leverage: {info['max_leverage']}")


# ==================== Sample ====================

@cli.command("sample")
@click.option("--with-proof", is_flag=True, help="Attach a policy proof")
@click.option("--property", "properties", multiple=True, help="Checked property for the proof")
@click.option("--image-id", default=None, help="Image id for the proof")
def sample(with_proof, properties, image_id):
    """Print a freshly signed sample attestation (test key)."""
    from zcp.testing.vectors import TEST_IMAGE_ID, make_attestation

    attestation = make_attestation(
        with_policy_proof=with_proof or bool(properties),
        properties=list(properties) or None,
        image_id=image_id or TEST_IMAGE_ID,
    )
    click.echo(attestation.to_json())


# ==================== Entry Point ====================

def main():
    """Main entry point for zcp."""
    cli(obj={})


if __name__ == "__main__":
    main()
