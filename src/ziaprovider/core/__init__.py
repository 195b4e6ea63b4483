"""Core modules for the ZIA provider - centralized error definitions."""

from ziaprovider.core.errors import (
    ActivationError,
    APIError,
    ConfigurationError,
    DecodeError,
    ExitCode,
    NotFoundError,
    ProviderError,
    TransientAPIError,
    ValidationError,
    ZIAProviderError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "ZIAProviderError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "TransientAPIError",
    "APIError",
    "NotFoundError",
    "DecodeError",
    "ActivationError",
    "main_with_error_handling",
    "format_error_message",
]
