"""
slashform utilities: logging and error handling.
"""

from .logging import (
    setup_logging,
    get_logger,
    log_performance,
    performance_timer,
)

from .error_handling import (
    SlashFormError,
    ConfigurationError,
    SchemaError,
    ExternalCallError,
    AppCallError,
    ReferenceNotFoundError,
    handle_external_call,
    handle_configuration_operation,
)

__all__ = [
    # Logging utilities
    "setup_logging",
    "get_logger",
    "log_performance",
    "performance_timer",

    # Error handling utilities
    "SlashFormError",
    "ConfigurationError",
    "SchemaError",
    "ExternalCallError",
    "AppCallError",
    "ReferenceNotFoundError",
    "handle_external_call",
    "handle_configuration_operation",
]
