from __future__ import annotations

import asyncio
import json as jsonlib
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Awaitable, Callable

import httpx
import structlog
from circuitbreaker import CircuitBreakerError, circuit
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from ziaprovider.core.errors import APIError, DecodeError, NotFoundError, TransientAPIError

logger = structlog.get_logger()

NOT_FOUND_CODES = frozenset({"RESOURCE_NOT_FOUND"})


def is_retryable_status(status_code: int) -> bool:
    """Determine if HTTP status code is retryable."""
    return status_code in (408, 429, 500, 502, 503, 504)


def parse_retry_after(value: str | None) -> float | None:
    """Seconds to wait from a ``Retry-After`` header (delta-seconds or HTTP date)."""
    if not value:
        return None
    value = value.strip()
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0.0, (when - datetime.now(timezone.utc)).total_seconds())


class wait_retry_after(wait_base):
    """Wait for the server's ``Retry-After`` when present, else defer to ``fallback``."""

    def __init__(self, fallback: wait_base, max_wait: float = 300.0) -> None:
        self.fallback = fallback
        self.max_wait = max_wait

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            error = outcome.exception()
            retry_after = getattr(error, "details", {}).get("retry_after")
            if isinstance(retry_after, (int, float)):
                return min(float(retry_after), self.max_wait)
        return self.fallback(retry_state)


def parse_error_body(response: httpx.Response) -> tuple[str | None, str]:
    """Return (code, message) from a ZIA error body; message falls back to the raw text."""
    text = response.text
    try:
        body = jsonlib.loads(text) if text else None
    except ValueError:
        return None, text or response.reason_phrase
    if isinstance(body, dict):
        code = body.get("code")
        message = body.get("message") or text
        return (str(code) if code else None), str(message)
    return None, text


class BaseHTTPClient:
    """Base HTTP client with retry logic and circuit breaker."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 60.0,
        max_retries: int = 5,
        backoff_factor: float = 1.0,
        user_agent: str | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._backoff_factor = backoff_factor
        self._user_agent = user_agent
        self._sleep = sleep

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _headers(self) -> dict[str, str]:
        """Override to provide custom (e.g. authentication) headers."""
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._user_agent:
            headers["User-Agent"] = self._user_agent
        return headers

    async def _handle_unauthorized(self) -> bool:
        """Override to refresh credentials; return True to replay the request once."""
        return False

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute HTTP request with retry and circuit breaker."""
        try:
            return await self._request_with_retry(
                method, path, params=params, json=json, headers=headers
            )
        except CircuitBreakerError as exc:
            raise TransientAPIError(
                str(exc), details={"method": method, "path": path}
            ) from exc

    @circuit(
        failure_threshold=5,
        recovery_timeout=60,
        expected_exception=TransientAPIError,
    )
    async def _request_with_retry(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(TransientAPIError),
            stop=stop_after_attempt(self._max_retries),
            wait=wait_retry_after(wait_exponential(multiplier=self._backoff_factor, max=30)),
            sleep=self._sleep,
            reraise=True,
        ):
            with attempt:
                return await self._send(method, path, params=params, json=json, headers=headers)
        return None  # pragma: no cover - AsyncRetrying always returns or raises

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None,
        json: Any,
        headers: dict[str, str] | None,
        replayed: bool = False,
    ) -> Any:
        url = f"{self._base_url}{path}"
        req_headers = await self._headers()
        if headers:
            req_headers.update(headers)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    headers=req_headers,
                )
        except httpx.TransportError as exc:
            logger.warning("http_network_error", method=method, url=url, error=str(exc))
            raise TransientAPIError(str(exc), details={"method": method, "path": path}) from exc

        if response.status_code == 401 and not replayed and await self._handle_unauthorized():
            logger.info("http_reauthenticated", method=method, url=url)
            return await self._send(
                method, path, params=params, json=json, headers=headers, replayed=True
            )

        if is_retryable_status(response.status_code):
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(
                "http_retryable_error",
                status=response.status_code,
                method=method,
                url=url,
                retry_after=retry_after,
            )
            retry_details: dict[str, Any] = {"method": method, "path": path, "status": response.status_code}
            if retry_after is not None:
                retry_details["retry_after"] = retry_after
            raise TransientAPIError(f"HTTP {response.status_code}: {response.text}", details=retry_details)

        if response.is_error:
            code, message = parse_error_body(response)
            details = {"method": method, "path": path, "status": response.status_code}
            if code:
                details["code"] = code
            if response.status_code == 404 or code in NOT_FOUND_CODES:
                raise NotFoundError(
                    message, status_code=response.status_code, code=code, details=details
                )
            logger.error(
                "http_permanent_error",
                status=response.status_code,
                method=method,
                url=url,
                code=code,
                error=message,
            )
            raise APIError(message, status_code=response.status_code, code=code, details=details)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(
                "response was not valid JSON",
                details={"method": method, "path": path, "status": response.status_code},
            ) from exc

    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute GET request."""
        return await self._request("GET", path, params=params, headers=headers)

    async def post(
        self,
        path: str,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute POST request."""
        return await self._request("POST", path, json=json, headers=headers)

    async def put(
        self,
        path: str,
        *,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute PUT request."""
        return await self._request("PUT", path, json=json, headers=headers)

    async def delete(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Execute DELETE request."""
        return await self._request("DELETE", path, headers=headers)
