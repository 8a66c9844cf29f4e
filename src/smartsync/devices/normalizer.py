"""Attribute normalization.

Devices report attributes as arbitrary JSON scalars. The cache keeps a
single numeric model:

- numbers pass through unchanged;
- the strings ``"on"`` and ``"present"`` become ``1.0``, every other string ``0.0``;
- anything else is logged and left out of the map.
"""

import logging
from collections.abc import Mapping

from ..api.records import AttributeValue, Number, Other, Text

logger = logging.getLogger(__name__)

TRUTHY_STRINGS = frozenset({"on", "present"})


def normalize_value(value: AttributeValue) -> float | None:
    """Map a tagged attribute value to a float, or None when it has no numeric form."""
    if isinstance(value, Number):
        return value.value
    if isinstance(value, Text):
        return 1.0 if value.value in TRUTHY_STRINGS else 0.0
    return None


def normalize_attributes(raw: Mapping[str, AttributeValue]) -> dict[str, float]:
    """Normalize a device's attribute map.

    Unhandled values do not fail the refresh; they are reported at warning
    level and the key is absent from the result.
    """
    normalized: dict[str, float] = {}
    for name, value in raw.items():
        number = normalize_value(value)
        if number is None:
            raw_value = value.raw if isinstance(value, Other) else value
            logger.warning(
                "unhandled attribute type: %s=%r (%s)", name, raw_value, type(raw_value).__name__
            )
            continue
        normalized[name] = number
    return normalized
