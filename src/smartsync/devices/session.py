"""Session establishment and catalog refresh."""

import logging
from collections.abc import Iterator

from ..api.endpoints import get_device_commands, get_device_info, get_devices, get_endpoint_uri
from ..api.transport import Transport
from ..auth.credentials import CredentialStore, FileCredentialStore, credential_key
from ..auth.oauth import Authorizer, OAuthClient, OAuthTransport, obtain_credential
from ..core.config import Config
from .device import Device

logger = logging.getLogger(__name__)


class Session:
    """Authenticated connection to one service endpoint.

    The transport and endpoint are fixed at construction. The device
    collection is rebuilt by :meth:`refresh` and replaced in a single
    assignment, so :attr:`devices` always returns a complete catalog.
    Concurrent :meth:`refresh` calls are not supported.
    """

    def __init__(self, transport: Transport, endpoint: str):
        self._transport = transport
        self._endpoint = endpoint
        self._devices: tuple[Device, ...] = ()

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def endpoint(self) -> str:
        return self._endpoint

    @property
    def devices(self) -> tuple[Device, ...]:
        return self._devices

    def __iter__(self) -> Iterator[Device]:
        return iter(self._devices)

    def __len__(self) -> int:
        return len(self._devices)

    def device(self, device_id: str) -> Device:
        """Look up a device by id.

        Raises:
            KeyError: If no device with that id is known.
        """
        for device in self._devices:
            if device.id == device_id:
                return device
        raise KeyError(device_id)

    def refresh(self) -> None:
        """Rebuild the device catalog from the service.

        Any failure aborts the whole refresh and keeps the previous catalog.

        Raises:
            NetworkError: If a request fails.
            DecodeError: If a response is malformed.
        """
        summaries = get_devices(self._transport, self._endpoint)
        devices: list[Device] = []
        for summary in summaries:
            detail = get_device_info(self._transport, self._endpoint, summary.id)
            descriptors = get_device_commands(self._transport, self._endpoint, summary.id)
            devices.append(Device.from_records(self, summary, detail, descriptors))

        self._devices = tuple(devices)
        logger.info("Refreshed %d devices from %s", len(devices), self._endpoint)

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def connect(
    config: Config,
    store: CredentialStore | None = None,
    authorize: Authorizer | None = None,
) -> Session:
    """Authenticate, resolve the endpoint and load the device catalog.

    Args:
        config: Client credentials, OAuth endpoints and HTTP settings.
        store: Credential store; defaults to files under ``config.store_dir``.
        authorize: Callback run when no usable credential is stored; see
            :func:`smartsync.auth.obtain_credential`.

    Returns:
        A session with its devices loaded.

    Raises:
        ValidationError: If the configuration lacks a client id or secret.
        AuthError: If no credential can be obtained.
        NetworkError: If endpoint discovery or the initial refresh fails.
        DecodeError: If the service returns malformed data.
    """
    config.validate()
    store = store or FileCredentialStore(config.store_dir)
    key = credential_key(config.client_id)

    client = OAuthClient(config.client_id, config.secret, config.oauth, timeout=config.http.timeout)
    credential = obtain_credential(client, store, key, authorize)
    transport = OAuthTransport(client, credential, store, key, user_agent=config.http.user_agent)

    try:
        endpoint = get_endpoint_uri(transport, config.oauth.endpoints_url)
        session = Session(transport, endpoint)
        session.refresh()
    except Exception:
        transport.close()
        raise

    return session
