"""Tests for the error hierarchy and the CLI error decorator."""

from ziaprovider.core.errors import (
    ActivationError,
    APIError,
    ConfigurationError,
    DecodeError,
    ExitCode,
    NotFoundError,
    ProviderError,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)


class TestExitCodes:
    def test_codes_by_category(self):
        assert ConfigurationError("x").exit_code == ExitCode.CONFIG_ERROR
        assert ValidationError("x").exit_code == ExitCode.VALIDATION_ERROR
        assert NotFoundError("x", status_code=404).exit_code == ExitCode.PROVIDER_ERROR
        assert DecodeError("x").exit_code == ExitCode.PROVIDER_ERROR
        assert ActivationError("x").exit_code == ExitCode.ACTIVATION_ERROR

    def test_hierarchy(self):
        assert issubclass(NotFoundError, APIError)
        assert issubclass(APIError, ProviderError)
        assert not issubclass(ActivationError, ProviderError)


class TestMainWithErrorHandling:
    def test_success(self):
        @main_with_error_handling()
        def cmd():
            return 0

        assert cmd() == 0

    def test_provider_error(self):
        @main_with_error_handling()
        def cmd():
            raise APIError("Rule label name already exists", status_code=400, code="DUPLICATE_ITEM")

        assert cmd() == ExitCode.PROVIDER_ERROR

    def test_unexpected_error(self):
        @main_with_error_handling(log_errors=False)
        def cmd():
            raise RuntimeError("boom")

        assert cmd() == ExitCode.UNKNOWN_ERROR

    def test_keyboard_interrupt(self):
        @main_with_error_handling()
        def cmd():
            raise KeyboardInterrupt

        assert cmd() == 130


def test_format_error_message():
    error = ConfigurationError("credentials incomplete", details={"missing": "ZIA_CLOUD"})
    assert format_error_message(error) == "credentials incomplete (missing=ZIA_CLOUD)"
    assert format_error_message(ValidationError("bad")) == "bad"
