from __future__ import annotations

import math
from typing import Any, Optional

from ..attendance.model import Location
from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def _coordinate(payload: dict, key: str, limit: float) -> float:
    raw = payload.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(raw, bool) or raw is None:
        raise ValidationError(f"location.{key} must be a number")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"location.{key} must be a number")
    if not math.isfinite(value) or abs(value) > limit:
        raise ValidationError(f"location.{key} must be between -{limit:g} and {limit:g}")
    return value


def parse_location(payload: Any) -> Optional[Location]:
    """Turn a ``{lat, lng, address?}`` payload into a Location.

    ``None`` means "no location supplied" and is allowed.
    """
    if payload is None:
        return None
    if isinstance(payload, Location):
        return payload
    if not isinstance(payload, dict):
        raise ValidationError("location must be an object with lat and lng")

    lat = _coordinate(payload, "lat", 90.0)
    lng = _coordinate(payload, "lng", 180.0)

    address = payload.get("address")
    if address is not None:
        if not isinstance(address, str):
            raise ValidationError("location.address must be a string")
        address = address.strip() or None

    return Location(lat=lat, lng=lng, address=address)
