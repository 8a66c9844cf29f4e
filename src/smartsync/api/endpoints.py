"""REST calls against the discovered device endpoint."""

import logging
from urllib.parse import quote

from .records import (
    CommandDescriptor,
    DeviceDetail,
    DeviceSummary,
    parse_device_commands,
    parse_device_detail,
    parse_device_list,
    parse_endpoints,
)
from .transport import Transport

logger = logging.getLogger(__name__)


def device_path(device_id: str, *segments: str) -> str:
    """Build ``/devices/{id}[/segment...]`` with each segment percent-quoted."""
    parts = ["devices", device_id, *segments]
    return "/" + "/".join(quote(part, safe="+") for part in parts)


def issue_command(transport: Transport, endpoint: str, path: str) -> bytes:
    """GET ``endpoint + path`` and return the raw body."""
    return transport.get(endpoint + path)


def get_endpoint_uri(transport: Transport, endpoints_url: str) -> str:
    """Resolve the base URI all device requests are issued under.

    Raises:
        NetworkError: If the discovery call fails.
        DecodeError: If the response holds no usable endpoint.
    """
    uri = parse_endpoints(transport.get(endpoints_url))
    logger.debug("Resolved endpoint %s", uri)
    return uri


def get_devices(transport: Transport, endpoint: str) -> list[DeviceSummary]:
    """List the devices visible to the credential."""
    return parse_device_list(issue_command(transport, endpoint, "/devices"))


def get_device_info(transport: Transport, endpoint: str, device_id: str) -> DeviceDetail:
    """Fetch one device's detail, including its raw attributes."""
    return parse_device_detail(issue_command(transport, endpoint, device_path(device_id)))


def get_device_commands(transport: Transport, endpoint: str, device_id: str) -> list[CommandDescriptor]:
    """Fetch the command descriptors a device accepts."""
    return parse_device_commands(
        issue_command(transport, endpoint, device_path(device_id, "commands"))
    )
