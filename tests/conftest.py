"""Shared fixtures: an in-memory transport serving a small device catalog."""

import json
import threading

import pytest

from smartsync.api.transport import Transport
from smartsync.core.exceptions import NetworkError
from smartsync.devices.session import Session

ENDPOINT = "https://graph.example.com/api/smartapps/installations/abc"


class FakeTransport(Transport):
    """Serves canned bodies keyed by full URI and records every request."""

    def __init__(self, endpoint: str = ENDPOINT):
        self.endpoint = endpoint
        self.routes: dict[str, bytes | Exception] = {}
        self.requests: list[str] = []
        self.closed = False
        self._lock = threading.Lock()

    def add(self, path: str, body) -> None:
        """Register a response for ``endpoint + path``.

        ``body`` may be raw bytes, an exception to raise, or any
        JSON-serializable value.
        """
        if not isinstance(body, (bytes, Exception)):
            body = json.dumps(body).encode()
        self.routes[self.endpoint + path] = body

    def get(self, uri: str) -> bytes:
        with self._lock:
            self.requests.append(uri)
            response = self.routes.get(uri)
        if response is None:
            raise NetworkError(f"GET {uri} returned HTTP 404", status_code=404)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


def add_device(transport: FakeTransport, device_id: str, name: str, display_name: str,
               attributes: dict, commands: list[str]) -> None:
    transport.add(f"/devices/{device_id}", {
        "id": device_id,
        "name": name,
        "displayName": display_name,
        "attributes": attributes,
    })
    transport.add(f"/devices/{device_id}/commands", [
        {"command": c, "params": {}} for c in commands
    ])


@pytest.fixture
def transport():
    """Transport serving two devices: a dimmer and a presence sensor."""
    fake = FakeTransport()
    fake.add("/devices", [
        {"id": "dev-1", "name": "Dimmer", "displayName": "Living room lamp"},
        {"id": "dev-2", "name": "Presence", "displayName": "Phone"},
    ])
    add_device(
        fake, "dev-1", "Dimmer", "Living room lamp",
        {"switch": "on", "level": 42, "flag": True},
        ["on", "off", "setLevel", "on", "refresh", "off"],
    )
    add_device(
        fake, "dev-2", "Presence", "Phone",
        {"presence": "present", "battery": 87.5},
        ["refresh"],
    )
    return fake


@pytest.fixture
def session(transport):
    """Session with the catalog already loaded."""
    s = Session(transport, transport.endpoint)
    s.refresh()
    return s
