"""smartsync - home-automation cloud client: device discovery, cached state and commands."""

__version__ = "0.1.0"
__author__ = "smartsync developers"

from .core.config import Config
from .core.exceptions import (
    AuthError,
    CommandError,
    DecodeError,
    NetworkError,
    SmartSyncError,
    TooManyArgumentsError,
    UnavailableCommandError,
)
from .devices import Device, Session, connect

__all__ = [
    "__version__",
    "__author__",
    "Config",
    "connect",
    "Session",
    "Device",
    "SmartSyncError",
    "AuthError",
    "NetworkError",
    "DecodeError",
    "CommandError",
    "UnavailableCommandError",
    "TooManyArgumentsError",
]
