"""Provider configuration (environment variables and .env files)."""

from ziaprovider.config.settings import Settings, get_settings, parse_bool_flag

__all__ = [
    "Settings",
    "get_settings",
    "parse_bool_flag",
]
