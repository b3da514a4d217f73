"""
ZCP CLI - Command Line Interface for ZCP

Provides commands for:
- Verifying attestation files against a trust policy
- Inspecting declared policy properties
- Emitting signed sample attestations
"""

from zcp.cli.main import cli

__all__ = ["cli"]
