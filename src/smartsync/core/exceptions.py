"""Custom exceptions for smartsync."""


class SmartSyncError(Exception):
    """Base exception for all smartsync errors."""

    def __init__(self, message: str, details: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class AuthError(SmartSyncError):
    """Credential could not be loaded, acquired, refreshed or persisted."""

    pass


class NetworkError(SmartSyncError):
    """Transport-level failure (connection, timeout, HTTP error status)."""

    def __init__(self, message: str, details: str | None = None, status_code: int | None = None):
        super().__init__(message, details)
        self.status_code = status_code


class DecodeError(SmartSyncError):
    """The service returned a payload that could not be decoded."""

    pass


class CommandError(SmartSyncError):
    """A device command was rejected before reaching the network."""

    pass


class UnavailableCommandError(CommandError):
    """The command is not in the device's current command set."""

    def __init__(self, command: str):
        super().__init__(f"unavailable command: {command}")
        self.command = command


class TooManyArgumentsError(CommandError):
    """More than one argument was passed to a device command."""

    def __init__(self, count: int):
        super().__init__("too many arguments", f"got {count}, at most 1 is accepted")
        self.count = count


class ValidationError(SmartSyncError):
    """Invalid configuration or input."""

    pass
