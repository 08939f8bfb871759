"""
Error types and error handling utilities for slashform.

Structural parse errors are not exceptions: they are a terminal parser state.
The exceptions here cover the collaborators the parser talks to (remote apps,
user/channel lookups) and configuration. The parser catches all of them at
its public boundary and turns them into result values.
"""

import functools
import asyncio
import logging
from typing import Any, Callable, Optional, Dict

from pydantic import ValidationError as PydanticValidationError

from .logging import get_logger


class SlashFormError(Exception):
    """Base exception for all slashform errors."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(SlashFormError):
    """Configuration-related error."""
    pass


class SchemaError(SlashFormError):
    """Command schema data is malformed."""
    pass


class ExternalCallError(SlashFormError):
    """A collaborator call (remote app, lookup) failed."""
    pass


class AppCallError(ExternalCallError):
    """The remote app answered with an error response.

    Attributes:
        response: The AppCallResponse carrying the error text and, for form
            submissions, per-field errors in ``response.data["errors"]``.
    """
    def __init__(self, message: str, response=None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details={"error_type": "app_error", **(details or {})})
        self.response = response


class ReferenceNotFoundError(ExternalCallError):
    """A user or channel could not be found."""
    def __init__(self, kind: str, key: str):
        super().__init__(
            f"{kind} not found: {key}",
            details={"error_type": "not_found", "kind": kind, "key": key}
        )
        self.kind = kind
        self.key = key


def handle_external_call(operation_name: str, timeout: Optional[float] = None,
                         logger: Optional[logging.Logger] = None):
    """
    Decorator to standardize collaborator call error handling.

    ExternalCallError subclasses pass through unchanged; timeouts, connection
    failures, malformed payloads and anything else are wrapped in
    ExternalCallError with the original exception chained.

    Args:
        operation_name: Human-readable name of the operation
        timeout: Optional timeout in seconds (async functions only)
        logger: Optional logger instance (defaults to operation-specific logger)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs) -> Any:
            _logger = logger or get_logger(f"slashform.apps.{operation_name}")

            try:
                _logger.debug(f"Starting {operation_name}")
                if timeout:
                    result = await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
                else:
                    result = await func(*args, **kwargs)
                _logger.debug(f"{operation_name} completed successfully")
                return result

            except ExternalCallError as e:
                _logger.debug(f"{operation_name} failed: {e}")
                raise

            except asyncio.TimeoutError as e:
                _logger.error(f"{operation_name} timed out after {timeout}s")
                raise ExternalCallError(
                    f"{operation_name} timed out",
                    details={"error_type": "timeout", "timeout_seconds": timeout}
                ) from e

            except ConnectionError as e:
                _logger.error(f"{operation_name} failed - connection error: {e}")
                raise ExternalCallError(
                    f"{operation_name} failed: Connection error",
                    details={"error_type": "connection", "original_error": str(e)}
                ) from e

            except PydanticValidationError as e:
                _logger.error(f"{operation_name} failed - malformed response: {e}")
                raise ExternalCallError(
                    f"{operation_name} failed: malformed response",
                    details={"error_type": "malformed", "original_error": str(e)}
                ) from e

            except Exception as e:
                _logger.error(f"{operation_name} failed - unexpected error: {e}", exc_info=True)
                raise ExternalCallError(
                    f"{operation_name} failed: {e}",
                    details={"error_type": "unexpected", "original_error": str(e)}
                ) from e

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs) -> Any:
            _logger = logger or get_logger(f"slashform.apps.{operation_name}")

            try:
                return func(*args, **kwargs)

            except ExternalCallError:
                raise

            except Exception as e:
                _logger.error(f"{operation_name} failed - unexpected error: {e}", exc_info=True)
                raise ExternalCallError(
                    f"{operation_name} failed: {e}",
                    details={"error_type": "unexpected", "original_error": str(e)}
                ) from e

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        else:
            return sync_wrapper

    return decorator


def handle_configuration_operation(operation_name: str):
    """
    Decorator to standardize configuration operation error handling.

    Args:
        operation_name: Human-readable name of the operation
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = get_logger(f"slashform.config.{operation_name}")

            try:
                logger.debug(f"Starting {operation_name}")
                result = func(*args, **kwargs)
                logger.debug(f"{operation_name} completed successfully")
                return result

            except ConfigurationError:
                raise

            except (FileNotFoundError, PermissionError) as e:
                logger.error(f"{operation_name} failed - file access error: {e}")
                raise ConfigurationError(
                    f"{operation_name} failed: {e}",
                    details={"error_type": "file_access", "original_error": str(e)}
                ) from e

            except (ValueError, TypeError) as e:
                logger.error(f"{operation_name} failed - validation error: {e}")
                raise ConfigurationError(
                    f"{operation_name} failed: {e}",
                    details={"error_type": "validation", "original_error": str(e)}
                ) from e

        return wrapper

    return decorator
