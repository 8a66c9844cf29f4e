"""Device state synchronization and command dispatch.

Example usage:
    >>> from smartsync.core import Config
    >>> from smartsync.devices import connect
    >>>
    >>> session = connect(Config(client_id="...", secret="..."))
    >>> for device in session:
    ...     print(device.display_name, device.attributes())
    >>>
    >>> lamp = session.device("0f3c...")
    >>> lamp.call("setLevel", 40)
    >>> lamp.refresh()
"""

from .device import Device, unique_commands
from .dispatcher import build_command_path, dispatch, format_argument, validate_command
from .normalizer import normalize_attributes, normalize_value
from .session import Session, connect

__all__ = [
    # Session
    "Session",
    "connect",
    # Device
    "Device",
    "unique_commands",
    # Normalizer
    "normalize_value",
    "normalize_attributes",
    # Dispatcher
    "format_argument",
    "validate_command",
    "build_command_path",
    "dispatch",
]
