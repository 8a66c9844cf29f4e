"""Wire records returned by the device endpoints.

Records are transient: they are decoded from a response, consumed while
building a device, and dropped. Attribute values are classified into the
:data:`AttributeValue` tagged union here, at the decode boundary, so the
normalizer never deals with raw JSON types.
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Union

from ..core.exceptions import DecodeError


@dataclass(frozen=True)
class Number:
    """Finite numeric attribute value."""

    value: float


@dataclass(frozen=True)
class Text:
    """String attribute value."""

    value: str


@dataclass(frozen=True)
class Other:
    """Any other JSON value (boolean, null, list, object, non-finite number)."""

    raw: Any


AttributeValue = Union[Number, Text, Other]


def classify(raw: Any) -> AttributeValue:
    """Tag a decoded JSON value.

    ``bool`` is checked before numbers since it is an ``int`` subclass in Python.
    """
    if isinstance(raw, bool):
        return Other(raw)
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return Other(raw)
        if math.isfinite(value):
            return Number(value)
        return Other(raw)
    if isinstance(raw, str):
        return Text(raw)
    return Other(raw)


def decode_json(payload: bytes, what: str) -> Any:
    """Decode a JSON response body.

    Raises:
        DecodeError: If the payload is not valid JSON.
    """
    try:
        return json.loads(payload)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"Malformed JSON in {what}", str(e)) from e


def _require_object(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a JSON object for {what}, got {type(data).__name__}")
    return data


def _require_list(data: Any, what: str) -> list[Any]:
    if not isinstance(data, list):
        raise DecodeError(f"Expected a JSON list for {what}, got {type(data).__name__}")
    return data


def _string(data: dict[str, Any], key: str, what: str, required: bool = False) -> str:
    value = data.get(key)
    if value is None:
        if required:
            raise DecodeError(f"Missing '{key}' in {what}")
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"Field '{key}' in {what} is not a string")
    return value


@dataclass
class DeviceSummary:
    """Entry of the ``/devices`` listing."""

    id: str
    name: str = ""
    display_name: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "DeviceSummary":
        data = _require_object(data, "device summary")
        return cls(
            id=_string(data, "id", "device summary", required=True),
            name=_string(data, "name", "device summary"),
            display_name=_string(data, "displayName", "device summary"),
        )


@dataclass
class DeviceDetail(DeviceSummary):
    """Body of ``/devices/{id}``: the summary fields plus raw attributes."""

    attributes: dict[str, AttributeValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "DeviceDetail":
        data = _require_object(data, "device detail")
        raw_attributes = data.get("attributes") or {}
        if not isinstance(raw_attributes, dict):
            raise DecodeError("Field 'attributes' in device detail is not an object")
        return cls(
            id=_string(data, "id", "device detail", required=True),
            name=_string(data, "name", "device detail"),
            display_name=_string(data, "displayName", "device detail"),
            attributes={str(k): classify(v) for k, v in raw_attributes.items()},
        )


@dataclass
class CommandDescriptor:
    """Entry of ``/devices/{id}/commands``.

    ``params`` is decoded but not used when dispatching commands.
    """

    command: str
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "CommandDescriptor":
        data = _require_object(data, "command descriptor")
        params = data.get("params") or {}
        if not isinstance(params, dict):
            raise DecodeError("Field 'params' in command descriptor is not an object")
        return cls(
            command=_string(data, "command", "command descriptor", required=True),
            params=params,
        )


def parse_device_list(payload: bytes) -> list[DeviceSummary]:
    data = _require_list(decode_json(payload, "device list"), "device list")
    return [DeviceSummary.from_dict(item) for item in data]


def parse_device_detail(payload: bytes) -> DeviceDetail:
    return DeviceDetail.from_dict(decode_json(payload, "device detail"))


def parse_device_commands(payload: bytes) -> list[CommandDescriptor]:
    data = _require_list(decode_json(payload, "device commands"), "device commands")
    return [CommandDescriptor.from_dict(item) for item in data]


def parse_endpoints(payload: bytes) -> str:
    """Extract the base URI from the endpoint discovery response.

    The response is a list of endpoint objects; the first one's ``uri`` is used.
    """
    data = _require_list(decode_json(payload, "endpoint list"), "endpoint list")
    if not data:
        raise DecodeError("Endpoint discovery returned no endpoints")
    first = _require_object(data[0], "endpoint")
    uri = _string(first, "uri", "endpoint", required=True)
    if not uri:
        raise DecodeError("Endpoint discovery returned an empty URI")
    return uri.rstrip("/")
