"""Observability module for logging."""

from stockwatch.observability.logging import (
    bind_pass_context,
    clear_pass_context,
    configure_logging,
)


__all__ = [
    "bind_pass_context",
    "clear_pass_context",
    "configure_logging",
]
