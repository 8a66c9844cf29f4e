"""OAuth credential model and credential stores.

A credential is persisted as a single opaque JSON blob under a key derived
from the OAuth client id. The session code only sees the abstract
:class:`CredentialStore` contract; where and how the blob is kept is up to
the store implementation.
"""

import hashlib
import json
import logging
import os
import re
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from ..core.exceptions import AuthError

logger = logging.getLogger(__name__)

# Tokens expiring within this margin are treated as already expired
EXPIRY_SKEW = timedelta(seconds=30)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9._-]+$")


def credential_key(client_id: str) -> str:
    """Derive the store key for a client id.

    Client ids made of filename-safe characters are used verbatim so the
    stored blob is easy to find; anything else is hashed.
    """
    if _SAFE_KEY.match(client_id):
        return f"token_{client_id}"
    digest = hashlib.sha256(client_id.encode("utf-8")).hexdigest()[:24]
    return f"token_{digest}"


@dataclass
class Credential:
    """OAuth2 access token plus the metadata needed to refresh it."""

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str | None = None
    expires_at: datetime | None = None
    scope: str | None = None

    @classmethod
    def from_token_response(cls, data: dict[str, Any], now: datetime | None = None) -> "Credential":
        """Build a credential from an OAuth2 token endpoint response.

        Args:
            data: Decoded JSON body of the token response.
            now: Reference time for ``expires_in``; defaults to current UTC time.

        Raises:
            AuthError: If the response carries no access token.
        """
        access_token = data.get("access_token")
        if not access_token or not isinstance(access_token, str):
            raise AuthError("Token response did not include an access token")

        now = now or datetime.now(timezone.utc)
        expires_at = None
        expires_in = data.get("expires_in")
        if isinstance(expires_in, (int, float)) and not isinstance(expires_in, bool):
            expires_at = now + timedelta(seconds=expires_in)

        return cls(
            access_token=access_token,
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token"),
            expires_at=expires_at,
            scope=data.get("scope"),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Credential":
        """Load a credential from its stored dictionary form."""
        expires_at = data.get("expires_at")
        if expires_at:
            expires_at = datetime.fromisoformat(expires_at)
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
        return cls(
            access_token=data["access_token"],
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token"),
            expires_at=expires_at or None,
            scope=data.get("scope"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "access_token": self.access_token,
            "token_type": self.token_type,
            "refresh_token": self.refresh_token,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "scope": self.scope,
        }

    def is_expired(self, now: datetime | None = None) -> bool:
        """True when the access token is past (or about to pass) its expiry."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now + EXPIRY_SKEW >= self.expires_at

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token)

    def is_valid(self, now: datetime | None = None) -> bool:
        """True when the credential can authorize requests, possibly after a refresh."""
        if not self.access_token:
            return False
        return not self.is_expired(now) or self.can_refresh


class CredentialStore(ABC):
    """Durable storage for one credential per key."""

    @abstractmethod
    def load(self, key: str) -> Credential | None:
        """Return the credential stored under ``key``, or None if there is none.

        Raises:
            AuthError: If a stored credential exists but cannot be read.
        """

    @abstractmethod
    def save(self, key: str, credential: Credential) -> None:
        """Store ``credential`` under ``key``, replacing any previous one.

        Raises:
            AuthError: If the credential cannot be persisted.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the credential stored under ``key``. Missing keys are ignored."""


class MemoryCredentialStore(CredentialStore):
    """Process-local store; nothing survives the process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, dict[str, Any]] = {}

    def load(self, key: str) -> Credential | None:
        with self._lock:
            data = self._items.get(key)
        return Credential.from_dict(data) if data else None

    def save(self, key: str, credential: Credential) -> None:
        with self._lock:
            self._items[key] = credential.to_dict()

    def delete(self, key: str) -> None:
        with self._lock:
            self._items.pop(key, None)


class FileCredentialStore(CredentialStore):
    """Keeps each credential as ``<directory>/<key>.json``.

    Files are written atomically (temp file + rename) and readable by the
    owner only, since they hold bearer tokens.
    """

    def __init__(self, directory: Path | str):
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise AuthError(f"Invalid credential key: {key!r}")
        return self.directory / f"{key}.json"

    def load(self, key: str) -> Credential | None:
        path = self.path_for(key)
        if not path.exists():
            logger.debug("No stored credential at %s", path)
            return None

        try:
            with open(path) as f:
                data = json.load(f)
            return Credential.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise AuthError(f"Cannot read stored credential {path}", str(e)) from e

    def save(self, key: str, credential: Credential) -> None:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.directory)
            try:
                with os.fdopen(fd, "w") as f:
                    json.dump(credential.to_dict(), f, indent=2)
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise AuthError(f"Cannot save credential to {path}", str(e)) from e

        logger.debug("Saved credential to %s", path)

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise AuthError(f"Cannot delete credential {path}", str(e)) from e
