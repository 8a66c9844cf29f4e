"""Transport, wire records and REST calls for the device service."""

from .endpoints import (
    device_path,
    get_device_commands,
    get_device_info,
    get_devices,
    get_endpoint_uri,
    issue_command,
)
from .records import (
    AttributeValue,
    CommandDescriptor,
    DeviceDetail,
    DeviceSummary,
    Number,
    Other,
    Text,
    classify,
)
from .transport import BearerTransport, HTTPTransport, Transport

__all__ = [
    # Transport
    "Transport",
    "HTTPTransport",
    "BearerTransport",
    # Records
    "AttributeValue",
    "Number",
    "Text",
    "Other",
    "classify",
    "DeviceSummary",
    "DeviceDetail",
    "CommandDescriptor",
    # Endpoints
    "device_path",
    "issue_command",
    "get_endpoint_uri",
    "get_devices",
    "get_device_info",
    "get_device_commands",
]
