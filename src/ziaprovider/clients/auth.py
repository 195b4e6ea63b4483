"""
Authentication for the ZIA API.

Two modes are supported:

- Legacy: username, password and API key exchanged for a JSESSIONID cookie
  via ``POST /authenticatedSession``. The API key is obfuscated with the
  request timestamp before it is sent.
- OneAPI: OAuth2 client-credentials token issued by ZIdentity for the
  tenant's vanity domain.

Both expose ``headers()`` (async) and ``invalidate()`` so the client can
re-authenticate once when the API answers 401.
"""

from __future__ import annotations

import asyncio
import time
from typing import Protocol

import httpx
import structlog

from ziaprovider.core.errors import APIError, DecodeError, TransientAPIError

logger = structlog.get_logger()

SESSION_TIMEOUT_SECONDS = 30 * 60
SESSION_REFRESH_OFFSET_SECONDS = 5 * 60
ONEAPI_AUDIENCE = "https://api.zscaler.com"


class Authenticator(Protocol):
    async def headers(self) -> dict[str, str]:
        ...

    def invalidate(self) -> None:
        ...

    async def aclose(self) -> None:
        ...


def obfuscate_api_key(api_key: str, timestamp: str) -> str:
    """Derive the per-login key the legacy session endpoint expects."""
    if len(timestamp) < 6 or len(api_key) < 12:
        raise ValueError("timestamp or API key is too short to obfuscate")
    n = timestamp[-6:]
    r = f"{int(n) >> 1:06d}"
    key = "".join(api_key[int(digit)] for digit in n)
    key += "".join(api_key[int(digit) + 2] for digit in r)
    return key


def legacy_base_url(cloud: str) -> str:
    if cloud.startswith(("http://", "https://")):
        return cloud.rstrip("/")
    return f"https://zsapi.{cloud}.net/api/v1"


def oneapi_base_url(cloud: str | None) -> str:
    if not cloud or cloud.lower() == "production":
        return "https://api.zsapi.net/zia/api/v1"
    return f"https://api.{cloud.lower()}.zsapi.net/zia/api/v1"


def oneapi_token_url(vanity_domain: str, cloud: str | None) -> str:
    if not cloud or cloud.lower() == "production":
        return f"https://{vanity_domain}.zslogin.net/oauth2/v1/token"
    return f"https://{vanity_domain}.zslogin{cloud.lower()}.net/oauth2/v1/token"


async def _post_auth(
    url: str, *, timeout: float, **kwargs: object
) -> httpx.Response:
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, **kwargs)  # type: ignore[arg-type]
    except httpx.TransportError as exc:
        raise TransientAPIError(str(exc), details={"path": url}) from exc
    if response.is_error:
        raise APIError(
            response.text or response.reason_phrase,
            status_code=response.status_code,
            details={"path": url, "status": response.status_code},
        )
    return response


class LegacySessionAuth:
    """JSESSIONID-based authentication for the legacy ZIA API."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        api_key: str,
        *,
        timeout: float = 60.0,
        clock=time.time,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._username = username
        self._password = password
        self._api_key = api_key
        self._timeout = timeout
        self._clock = clock
        self._session_id: str | None = None
        self._refreshed_at = 0.0
        self._lock = asyncio.Lock()

    def _expired(self) -> bool:
        age = self._clock() - self._refreshed_at
        return age >= SESSION_TIMEOUT_SECONDS - SESSION_REFRESH_OFFSET_SECONDS

    async def _login(self) -> None:
        timestamp = str(int(self._clock() * 1000))
        payload = {
            "username": self._username,
            "password": self._password,
            "apiKey": obfuscate_api_key(self._api_key, timestamp),
            "timestamp": timestamp,
        }
        response = await _post_auth(
            f"{self._base_url}/authenticatedSession", timeout=self._timeout, json=payload
        )
        session_id = response.cookies.get("JSESSIONID")
        if not session_id:
            raise DecodeError("authentication response did not set JSESSIONID")
        self._session_id = session_id
        self._refreshed_at = self._clock()
        logger.info("zia_session_created", username=self._username)

    async def headers(self) -> dict[str, str]:
        async with self._lock:
            if self._session_id is None or self._expired():
                await self._login()
        return {"Cookie": f"JSESSIONID={self._session_id}"}

    def invalidate(self) -> None:
        self._session_id = None

    async def aclose(self) -> None:
        if self._session_id is None:
            return
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                await client.delete(
                    f"{self._base_url}/authenticatedSession",
                    headers={"Cookie": f"JSESSIONID={self._session_id}"},
                )
        except httpx.TransportError as exc:
            logger.warning("zia_session_logout_failed", error=str(exc))
        self._session_id = None


class OneAPIAuth:
    """OAuth2 client-credentials token manager for the OneAPI gateway."""

    def __init__(
        self,
        token_url: str,
        client_id: str,
        client_secret: str,
        *,
        timeout: float = 60.0,
        clock=time.time,
    ) -> None:
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._timeout = timeout
        self._clock = clock
        self._token: str | None = None
        self._expiry = 0.0
        self._lock = asyncio.Lock()

    async def _refresh(self) -> None:
        response = await _post_auth(
            self._token_url,
            timeout=self._timeout,
            data={
                "grant_type": "client_credentials",
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "audience": ONEAPI_AUDIENCE,
            },
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        try:
            data = response.json()
            token = data["access_token"]
        except (ValueError, KeyError, TypeError) as exc:
            raise DecodeError("token response did not contain access_token") from exc
        self._token = token
        # Refresh at 90% of the advertised lifetime
        self._expiry = self._clock() + float(data.get("expires_in", 3600)) * 0.9
        logger.info("oneapi_token_issued", client_id=self._client_id)

    async def headers(self) -> dict[str, str]:
        async with self._lock:
            if self._token is None or self._clock() >= self._expiry:
                await self._refresh()
        return {"Authorization": f"Bearer {self._token}"}

    def invalidate(self) -> None:
        self._token = None

    async def aclose(self) -> None:
        return None
