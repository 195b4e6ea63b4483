"""
Unified error handling for the ZIA provider.

Every failure raised by the provider derives from ``ZIAProviderError`` and
carries an exit code so the CLI can report it consistently.

Exit Codes:
- 0: Success
- 10: Configuration error
- 11: Provider error (ZIA API failure)
- 12: Validation error
- 13: Activation error (mutation succeeded, activation did not)
- 127: Unknown/internal error
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Standardized exit codes for CLI commands."""

    SUCCESS = 0
    CONFIG_ERROR = 10
    PROVIDER_ERROR = 11
    VALIDATION_ERROR = 12
    ACTIVATION_ERROR = 13
    UNKNOWN_ERROR = 127


class ZIAProviderError(Exception):
    """Base exception for provider errors with exit code support."""

    exit_code: ExitCode = ExitCode.UNKNOWN_ERROR
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ZIAProviderError):
    """Raised for missing credentials, unknown resource types and similar."""

    exit_code = ExitCode.CONFIG_ERROR


class ValidationError(ZIAProviderError):
    """Raised when desired state does not satisfy a resource schema."""

    exit_code = ExitCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        problems: list[str] | None = None,
    ):
        super().__init__(message, details)
        self.problems = problems or []


class ProviderError(ZIAProviderError):
    """Raised when the ZIA API or the transport to it fails."""

    exit_code = ExitCode.PROVIDER_ERROR


class TransientAPIError(ProviderError):
    """Timeouts, connection failures and retryable HTTP statuses."""


class APIError(ProviderError):
    """The API answered with an error body. The vendor message is kept verbatim."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.code = code


class NotFoundError(APIError):
    """The requested object does not exist (HTTP 404 or RESOURCE_NOT_FOUND)."""


class DecodeError(ProviderError):
    """A response could not be parsed into the expected shape."""

    show_traceback = True


class ActivationError(ZIAProviderError):
    """Activation failed after the configuration change itself was saved."""

    exit_code = ExitCode.ACTIVATION_ERROR


# Type variable for decorated functions
F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI entry points that converts exceptions to exit codes.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Exit codes:
        - ZIAProviderError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130 (standard for SIGINT)
        - Other exceptions: Returns 127 (unknown error)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except ZIAProviderError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=e.exit_code,
                        **e.details,
                    )
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return 130
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=ExitCode.UNKNOWN_ERROR,
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.UNKNOWN_ERROR

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: ZIAProviderError) -> str:
    """Format an error message for display to users."""
    msg = error.message
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg
