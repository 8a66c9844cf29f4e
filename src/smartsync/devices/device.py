"""Per-device cached state.

A :class:`Device` caches the attributes and commands last fetched from the
service. It is safe to use from several threads:

- reads (:meth:`Device.attributes`, :meth:`Device.attribute`,
  :meth:`Device.has_command`, :meth:`Device.call`) take the read side of the
  device's :class:`~smartsync.core.locks.ReadWriteLock`;
- refreshes fetch and normalize with no lock held, then take the write side
  only to swap the new map or command tuple in.

Cached maps are never mutated after they are swapped in, so a reader sees
either the complete old state or the complete new state.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from ..api.endpoints import get_device_commands, get_device_info
from ..api.records import CommandDescriptor, DeviceDetail, DeviceSummary
from ..core.locks import ReadWriteLock
from .dispatcher import dispatch
from .normalizer import normalize_attributes

if TYPE_CHECKING:
    from .session import Session

logger = logging.getLogger(__name__)


def unique_commands(descriptors: Iterable[CommandDescriptor]) -> tuple[str, ...]:
    """Command names without duplicates, in first-seen order."""
    return tuple(dict.fromkeys(d.command for d in descriptors))


class Device:
    """A device registered with the service.

    Args:
        session: Owning session; provides the transport and endpoint.
        device_id: Service-assigned device id.
        name: Device name.
        display_name: Human label.
        commands: Known command names; duplicates are dropped.
    """

    def __init__(
        self,
        session: "Session",
        device_id: str,
        name: str = "",
        display_name: str = "",
        commands: Iterable[str] = (),
    ):
        self._session = session
        self.id = device_id
        self.name = name
        self.display_name = display_name
        self._lock = ReadWriteLock()
        self._attributes: dict[str, float] | None = None
        self._commands: tuple[str, ...] = tuple(dict.fromkeys(commands))

    @classmethod
    def from_records(
        cls,
        session: "Session",
        summary: DeviceSummary,
        detail: DeviceDetail,
        descriptors: Sequence[CommandDescriptor],
    ) -> "Device":
        """Build a populated device from freshly fetched records."""
        device = cls(
            session,
            summary.id,
            name=detail.name or summary.name,
            display_name=detail.display_name or summary.display_name,
            commands=unique_commands(descriptors),
        )
        device._swap_attributes(normalize_attributes(detail.attributes))
        return device

    def __repr__(self) -> str:
        return f"Device(id={self.id!r}, name={self.name!r})"

    @property
    def populated(self) -> bool:
        """True once attributes have been fetched at least once."""
        with self._lock.read_locked():
            return self._attributes is not None

    @property
    def commands(self) -> tuple[str, ...]:
        with self._lock.read_locked():
            return self._commands

    def _swap_attributes(self, attributes: dict[str, float]) -> None:
        with self._lock.write_locked():
            self._attributes = attributes

    def refresh(self) -> None:
        """Re-fetch this device's attributes.

        Raises:
            NetworkError: If the request fails.
            DecodeError: If the response is malformed.

        On failure the previously cached attributes are kept.
        """
        detail = get_device_info(self._session.transport, self._session.endpoint, self.id)
        self._swap_attributes(normalize_attributes(detail.attributes))
        logger.debug("Refreshed attributes of %s", self.id)

    def refresh_commands(self) -> None:
        """Re-fetch the commands this device accepts.

        Raises:
            NetworkError: If the request fails.
            DecodeError: If the response is malformed.
        """
        descriptors = get_device_commands(self._session.transport, self._session.endpoint, self.id)
        commands = unique_commands(descriptors)
        with self._lock.write_locked():
            self._commands = commands
        logger.debug("Refreshed commands of %s: %s", self.id, ", ".join(commands))

    def attributes(self) -> dict[str, float]:
        """Copy of the cached attribute map."""
        with self._lock.read_locked():
            return dict(self._attributes or {})

    def attribute(self, name: str) -> float:
        """Cached value of one attribute, ``0.0`` when the device does not report it."""
        with self._lock.read_locked():
            return (self._attributes or {}).get(name, 0.0)

    def has_command(self, name: str) -> bool:
        with self._lock.read_locked():
            return name in self._commands

    def call(self, command: str, *args: float) -> None:
        """Send a command to the device.

        The cached attributes are not updated; call :meth:`refresh` to see
        the effect.

        Args:
            command: Command name; must be one of :attr:`commands`.
            *args: At most one numeric argument.

        Raises:
            UnavailableCommandError: If the device does not accept ``command``.
            TooManyArgumentsError: If more than one argument is given.
            CommandError: If the argument is not a finite number.
            NetworkError: If the request fails.
        """
        dispatch(
            self._session.transport,
            self._session.endpoint,
            self.id,
            self.commands,
            command,
            args,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "display_name": self.display_name,
            "attributes": self.attributes(),
            "commands": list(self.commands),
        }
