"""Core module - configuration, exceptions, and locking."""

from .config import Config, HTTPConfig, OAuthConfig, get_config, set_config
from .exceptions import (
    AuthError,
    CommandError,
    DecodeError,
    NetworkError,
    SmartSyncError,
    TooManyArgumentsError,
    UnavailableCommandError,
    ValidationError,
)
from .locks import ReadWriteLock

__all__ = [
    "Config",
    "OAuthConfig",
    "HTTPConfig",
    "get_config",
    "set_config",
    "SmartSyncError",
    "AuthError",
    "NetworkError",
    "DecodeError",
    "CommandError",
    "UnavailableCommandError",
    "TooManyArgumentsError",
    "ValidationError",
    "ReadWriteLock",
]
