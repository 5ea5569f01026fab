"""Observability module for structured logging."""

from .logging import (
    PassContext,
    generator_var,
    get_logger,
    log_external_call_end,
    log_external_call_start,
    pass_id_var,
    setup_logging,
)

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Context
    "PassContext",
    "pass_id_var",
    "generator_var",
    # Logging helpers
    "log_external_call_start",
    "log_external_call_end",
]
