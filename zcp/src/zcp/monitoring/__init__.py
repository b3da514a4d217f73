"""
Logging for ZCP

Provides:
- JSON log formatting for the standard library logger
- structlog configuration
- Audit events for trust decisions
"""

from zcp.monitoring.logging import (
    AuditLogger,
    JSONFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    "AuditLogger",
    "JSONFormatter",
    "configure_logging",
    "get_logger",
]
