"""
Observability for Preflight.

Provides structured and human-readable logging for role checks.
"""

from preflight.observability.logging import (
    HumanReadableFormatter,
    PreflightLogger,
    StructuredFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    "HumanReadableFormatter",
    "PreflightLogger",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
]
