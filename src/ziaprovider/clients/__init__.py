"""ZIA API client layer."""

from ziaprovider.clients.auth import LegacySessionAuth, OneAPIAuth, obfuscate_api_key
from ziaprovider.clients.base import BaseHTTPClient
from ziaprovider.clients.retry import retry_on_error
from ziaprovider.clients.zia import ZIAClient

__all__ = [
    "BaseHTTPClient",
    "LegacySessionAuth",
    "OneAPIAuth",
    "ZIAClient",
    "obfuscate_api_key",
    "retry_on_error",
]
