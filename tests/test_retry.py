import pytest

from ziaprovider.clients.retry import is_edit_lock_error, is_fail_fast, retry_on_error
from ziaprovider.core.errors import APIError, TransientAPIError


def _api_error(code):
    return APIError(f"failed with {code}", status_code=409, code=code)


class Flaky:
    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return "ok"


@pytest.mark.asyncio
async def test_edit_lock_retried_until_success():
    call = Flaky(_api_error("EDIT_LOCK_NOT_AVAILABLE"), _api_error("EDIT_LOCK_NOT_AVAILABLE"))

    assert await retry_on_error(call, attempts=3, interval=0) == "ok"
    assert call.calls == 3


@pytest.mark.asyncio
async def test_gives_up_after_attempts():
    call = Flaky(*[_api_error("EDIT_LOCK_NOT_AVAILABLE")] * 5)

    with pytest.raises(APIError):
        await retry_on_error(call, attempts=2, interval=0)

    assert call.calls == 2


@pytest.mark.asyncio
async def test_fail_fast_codes_not_retried():
    call = Flaky(_api_error("INVALID_INPUT_ARGUMENT"))

    with pytest.raises(APIError):
        await retry_on_error(call, attempts=3, interval=0, predicate=lambda exc: True)

    assert call.calls == 1


@pytest.mark.asyncio
async def test_other_errors_propagate_immediately():
    call = Flaky(TransientAPIError("reset"))

    with pytest.raises(TransientAPIError):
        await retry_on_error(call, attempts=3, interval=0)

    assert call.calls == 1


@pytest.mark.asyncio
async def test_custom_predicate():
    call = Flaky(TransientAPIError("reset"))

    result = await retry_on_error(
        call,
        attempts=2,
        interval=0,
        predicate=lambda exc: isinstance(exc, TransientAPIError),
    )

    assert result == "ok"


def test_classifiers():
    assert is_edit_lock_error(_api_error("EDIT_LOCK_NOT_AVAILABLE"))
    assert not is_edit_lock_error(ValueError("x"))
    assert is_fail_fast(_api_error("DUPLICATE_ITEM"))
    assert not is_fail_fast(_api_error("EDIT_LOCK_NOT_AVAILABLE"))
