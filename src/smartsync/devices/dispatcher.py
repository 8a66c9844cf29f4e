"""Command validation and request-path construction."""

import logging
import math
from collections.abc import Collection, Sequence

from ..api.endpoints import device_path, issue_command
from ..api.transport import Transport
from ..core.exceptions import CommandError, TooManyArgumentsError, UnavailableCommandError

logger = logging.getLogger(__name__)

MAX_ARGUMENTS = 1

# Integral values at or above this magnitude render in exponent form
_EXPONENT_THRESHOLD = 1e21


def format_argument(value: float) -> str:
    """Render a numeric command argument as a path segment.

    Integral values print without a fractional part (``42.0`` -> ``"42"``);
    everything else uses the shortest round-trip form (``0.5``, ``1e-05``).

    Raises:
        CommandError: If the value is not a finite number.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CommandError(f"invalid argument: {value!r}", "command arguments must be numbers")
    try:
        value = float(value)
    except OverflowError:
        raise CommandError("invalid argument: number too large", "command arguments must fit in a float") from None
    if not math.isfinite(value):
        raise CommandError(f"invalid argument: {value!r}", "command arguments must be finite")
    if value.is_integer() and abs(value) < _EXPONENT_THRESHOLD:
        return str(int(value))
    return repr(value)


def validate_command(commands: Collection[str], command: str, args: Sequence[float]) -> None:
    """Check a command against a device's command set and the argument cap.

    Raises:
        UnavailableCommandError: If ``command`` is not in ``commands``.
        TooManyArgumentsError: If more than one argument is given.
    """
    if command not in commands:
        raise UnavailableCommandError(command)
    if len(args) > MAX_ARGUMENTS:
        raise TooManyArgumentsError(len(args))


def build_command_path(device_id: str, command: str, args: Sequence[float] = ()) -> str:
    """Return ``/devices/{id}/{command}[/{arg}]``."""
    return device_path(device_id, command, *(format_argument(a) for a in args))


def dispatch(
    transport: Transport,
    endpoint: str,
    device_id: str,
    commands: Collection[str],
    command: str,
    args: Sequence[float] = (),
) -> None:
    """Validate and issue a command. The response body is discarded.

    Raises:
        CommandError: On local validation failure; nothing is sent.
        NetworkError: If the request fails.
    """
    validate_command(commands, command, args)
    path = build_command_path(device_id, command, args)
    logger.debug("Issuing command %s", path)
    issue_command(transport, endpoint, path)
