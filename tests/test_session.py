"""Tests for session refresh and connection setup."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from smartsync.auth.credentials import Credential, MemoryCredentialStore, credential_key
from smartsync.auth.oauth import OAuthClient
from smartsync.core.config import Config
from smartsync.core.exceptions import AuthError, DecodeError, NetworkError, ValidationError
from smartsync.devices.session import Session, connect

from conftest import ENDPOINT, FakeTransport, add_device


class TestSessionRefresh:
    """Tests for full-catalog refresh."""

    def test_refresh_builds_devices(self, session):
        assert len(session) == 2
        assert [d.id for d in session] == ["dev-1", "dev-2"]

        lamp = session.device("dev-1")
        assert lamp.name == "Dimmer"
        assert lamp.display_name == "Living room lamp"
        assert lamp.populated

    def test_devices_is_immutable_snapshot(self, session):
        devices = session.devices
        assert isinstance(devices, tuple)

    def test_unknown_device(self, session):
        with pytest.raises(KeyError):
            session.device("nope")

    def test_refresh_replaces_devices(self, session, transport):
        old = session.device("dev-1")
        transport.add("/devices", [{"id": "dev-2", "name": "Presence", "displayName": "Phone"}])

        session.refresh()

        assert [d.id for d in session] == ["dev-2"]
        assert session.device("dev-2") is not old
        with pytest.raises(KeyError):
            session.device("dev-1")

    def test_refresh_creates_new_device_objects(self, session):
        before = session.devices

        session.refresh()

        assert all(a is not b for a, b in zip(before, session.devices))
        assert [d.id for d in before] == [d.id for d in session.devices]

    def test_second_device_failure_keeps_previous_collection(self, session, transport):
        before = session.devices
        transport.add("/devices/dev-2", NetworkError("connection reset"))

        with pytest.raises(NetworkError):
            session.refresh()

        assert session.devices is before
        assert len(session) == 2

    def test_command_fetch_failure_keeps_previous_collection(self, session, transport):
        before = session.devices
        transport.add("/devices/dev-1/commands", b"not json")

        with pytest.raises(DecodeError):
            session.refresh()

        assert session.devices is before

    def test_list_failure_keeps_previous_collection(self, session, transport):
        before = session.devices
        transport.add("/devices", NetworkError("HTTP 500", status_code=500))

        with pytest.raises(NetworkError):
            session.refresh()

        assert session.devices is before

    def test_failed_first_refresh_leaves_empty_catalog(self, transport):
        transport.add("/devices/dev-2", NetworkError("boom"))
        fresh = Session(transport, ENDPOINT)

        with pytest.raises(NetworkError):
            fresh.refresh()

        assert fresh.devices == ()

    def test_detail_names_win_over_summary(self, transport):
        transport.add("/devices", [{"id": "dev-9", "name": "old", "displayName": "Old"}])
        add_device(transport, "dev-9", "Renamed", "New label", {}, [])
        s = Session(transport, ENDPOINT)

        s.refresh()

        device = s.device("dev-9")
        assert device.name == "Renamed"
        assert device.display_name == "New label"
        assert device.commands == ()

    def test_context_manager_closes_transport(self, transport):
        with Session(transport, ENDPOINT):
            pass
        assert transport.closed


def _config() -> Config:
    config = Config(client_id="client-1", secret="s3cret")
    config.oauth.endpoints_url = "https://auth.example.com/endpoints"
    return config


def _fake_service(transport: FakeTransport) -> None:
    transport.routes["https://auth.example.com/endpoints"] = (
        f'[{{"uri": "{ENDPOINT}"}}]'.encode()
    )


class TestConnect:
    """Tests for establishing a session."""

    def test_connect_with_stored_credential(self, transport):
        _fake_service(transport)
        store = MemoryCredentialStore()
        store.save(credential_key("client-1"), Credential(access_token="stored", refresh_token="r"))
        authorize = MagicMock()

        with patch("smartsync.devices.session.OAuthTransport", return_value=transport) as transport_cls:
            session = connect(_config(), store=store, authorize=authorize)

        authorize.assert_not_called()
        assert session.endpoint == ENDPOINT
        assert [d.id for d in session] == ["dev-1", "dev-2"]
        credential = transport_cls.call_args.args[1]
        assert credential.access_token == "stored"

    def test_connect_acquires_and_persists_credential(self, transport):
        _fake_service(transport)
        store = MemoryCredentialStore()
        authorize = MagicMock(return_value="auth-code")
        issued = Credential(access_token="fresh", refresh_token="r1")

        with patch.object(OAuthClient, "exchange_code", return_value=issued) as exchange, \
                patch("smartsync.devices.session.OAuthTransport", return_value=transport):
            connect(_config(), store=store, authorize=authorize)

        exchange.assert_called_once_with("auth-code")
        url = authorize.call_args.args[0]
        assert "client_id=client-1" in url
        assert store.load(credential_key("client-1")).access_token == "fresh"

    def test_connect_reacquires_unusable_credential(self, transport):
        _fake_service(transport)
        store = MemoryCredentialStore()
        expired = Credential(
            access_token="old",
            expires_at=datetime.now(timezone.utc) - timedelta(hours=1),
        )
        store.save(credential_key("client-1"), expired)
        authorize = MagicMock(return_value="auth-code")

        with patch.object(OAuthClient, "exchange_code", return_value=Credential("new")), \
                patch("smartsync.devices.session.OAuthTransport", return_value=transport):
            connect(_config(), store=store, authorize=authorize)

        authorize.assert_called_once()
        assert store.load(credential_key("client-1")).access_token == "new"

    def test_connect_fails_on_auth_error(self):
        store = MemoryCredentialStore()
        authorize = MagicMock(side_effect=AuthError("Authorization denied"))

        with pytest.raises(AuthError):
            connect(_config(), store=store, authorize=authorize)

    def test_connect_fails_on_discovery_error(self, transport):
        store = MemoryCredentialStore()
        store.save(credential_key("client-1"), Credential(access_token="stored"))

        with patch("smartsync.devices.session.OAuthTransport", return_value=transport):
            with pytest.raises(NetworkError):
                connect(_config(), store=store)

        assert transport.closed

    def test_connect_fails_on_refresh_error(self, transport):
        _fake_service(transport)
        transport.add("/devices/dev-2/commands", NetworkError("boom"))
        store = MemoryCredentialStore()
        store.save(credential_key("client-1"), Credential(access_token="stored"))

        with patch("smartsync.devices.session.OAuthTransport", return_value=transport):
            with pytest.raises(NetworkError):
                connect(_config(), store=store)

        assert transport.closed

    def test_connect_requires_client_credentials(self):
        with pytest.raises(ValidationError):
            connect(Config(), store=MemoryCredentialStore())
