"""
Query-string parsers for listing filters, map bounds and map viewports.
Invalid values are dropped rather than rejected so shared URLs keep working.
"""

from typing import Any, Dict, List, Mapping, Optional, Union
from enum import Enum
import math
import uuid
import logging

from app.schemas.property import PropertyFilters
from app.models.property import PropertyCategory, PropertyStatus, TransactionType
from app.utils.exceptions import ValidationError

logger = logging.getLogger(__name__)

# Country envelope used to clamp map bounds (Ecuador, mainland)
ECUADOR_BOUNDS = {
    "min_lat": -5.1,
    "max_lat": 1.5,
    "min_lng": -81.2,
    "max_lng": -75.2,
}

WORLD_BOUNDS = {
    "ne_lat": 90.0,
    "ne_lng": 180.0,
    "sw_lat": -90.0,
    "sw_lng": -180.0,
}

DEFAULT_VIEWPORT = {"latitude": -2.9001, "longitude": -79.0058, "zoom": 12}

MIN_ZOOM = 0
MAX_ZOOM = 22
COORDINATE_DECIMALS = 4
# Smallest viewport half-height in degrees, about one meter
MIN_HALF_SPAN = 1e-5

BOUNDS_KEYS = ("ne_lat", "ne_lng", "sw_lat", "sw_lng")
NUMERIC_FILTER_KEYS = ("bedrooms", "bathrooms", "min_price", "max_price", "min_area", "max_area")
TEXT_FILTER_KEYS = ("city", "state", "search")
FILTER_KEY_ORDER = (
    "transaction_type",
    "category",
    "status",
    "city",
    "state",
    "bedrooms",
    "bathrooms",
    "min_price",
    "max_price",
    "min_area",
    "max_area",
    "search",
    "agent_id",
)

ParamSource = Mapping[str, Any]


def _get_all(params: ParamSource, key: str) -> List[str]:
    """Read every value of a key from a QueryParams/MultiDict or a plain dict."""
    if hasattr(params, "getlist"):
        values = params.getlist(key)
    else:
        raw = params.get(key)
        if raw is None:
            values = []
        elif isinstance(raw, (list, tuple)):
            values = list(raw)
        else:
            values = [raw]
    return [str(v) for v in values if v is not None]


def _parse_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _parse_enum_list(params: ParamSource, key: str, enum_cls) -> Optional[Union[Enum, List[Enum]]]:
    """Comma-separated or repeated enum values; unknown ones are dropped."""
    members: List[Enum] = []
    for raw in _get_all(params, key):
        for part in raw.split(","):
            part = part.strip().upper()
            if not part:
                continue
            try:
                member = enum_cls(part)
            except ValueError:
                logger.debug(f"Ignoring unknown {key} value: {part}")
                continue
            if member not in members:
                members.append(member)

    if not members:
        return None
    return members[0] if len(members) == 1 else members


def parse_filter_params(params: ParamSource) -> PropertyFilters:
    """
    Decode listing filters from query parameters.

    Args:
        params: Request query parameters (or a plain mapping)

    Returns:
        PropertyFilters with only the valid values set
    """
    data: Dict[str, Any] = {}

    transaction_type = _parse_enum_list(params, "transaction_type", TransactionType)
    if transaction_type is not None:
        data["transaction_type"] = transaction_type

    category = _parse_enum_list(params, "category", PropertyCategory)
    if category is not None:
        data["category"] = category

    status_values = _get_all(params, "status")
    if status_values:
        try:
            data["status"] = PropertyStatus(status_values[0].strip().upper())
        except ValueError:
            logger.debug(f"Ignoring unknown status value: {status_values[0]}")

    for key in NUMERIC_FILTER_KEYS:
        values = _get_all(params, key)
        number = _parse_float(values[0]) if values else None
        if number is None or number < 0:
            continue
        data[key] = int(number) if key == "bedrooms" else number

    if "min_price" in data and "max_price" in data and data["min_price"] > data["max_price"]:
        data["min_price"], data["max_price"] = data["max_price"], data["min_price"]

    for key in TEXT_FILTER_KEYS:
        values = _get_all(params, key)
        if values and values[0].strip():
            data[key] = values[0].strip()

    agent_values = _get_all(params, "agent_id")
    if agent_values:
        try:
            data["agent_id"] = uuid.UUID(agent_values[0])
        except ValueError:
            logger.debug(f"Ignoring invalid agent_id: {agent_values[0]}")

    return PropertyFilters(**data)


def _format_param(value: Any) -> str:
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_filter_params(filters: PropertyFilters) -> Dict[str, str]:
    """
    Encode filters back to query parameters, in a stable key order.
    List values are joined with commas.
    """
    encoded: Dict[str, str] = {}
    for key in FILTER_KEY_ORDER:
        value = getattr(filters, key)
        if value is None:
            continue
        if isinstance(value, list):
            if not value:
                continue
            encoded[key] = ",".join(_format_param(v) for v in value)
        else:
            encoded[key] = _format_param(value)
    return encoded


def _normalize_for_compare(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, list):
        if not value:
            return None
        return frozenset(_format_param(v) for v in value)
    return frozenset([_format_param(value)]) if isinstance(value, Enum) else value


def filters_are_equal(a: Optional[PropertyFilters], b: Optional[PropertyFilters]) -> bool:
    """
    Compare two filter sets.
    Lists compare order-insensitively; a scalar equals a one-item list.
    """
    a = a or PropertyFilters()
    b = b or PropertyFilters()
    for key in FILTER_KEY_ORDER:
        if _normalize_for_compare(getattr(a, key)) != _normalize_for_compare(getattr(b, key)):
            return False
    return True


def clamp_to_country(bounds: Dict[str, float]) -> Dict[str, float]:
    """
    Clamp bounds to the country envelope.

    Raises:
        ValidationError: If the bounds do not overlap the envelope at all
    """
    clamped = {
        "ne_lat": min(bounds["ne_lat"], ECUADOR_BOUNDS["max_lat"]),
        "ne_lng": min(bounds["ne_lng"], ECUADOR_BOUNDS["max_lng"]),
        "sw_lat": max(bounds["sw_lat"], ECUADOR_BOUNDS["min_lat"]),
        "sw_lng": max(bounds["sw_lng"], ECUADOR_BOUNDS["min_lng"]),
    }

    if clamped != bounds:
        logger.warning(f"Map bounds {bounds} outside country envelope, clamped to {clamped}")

    if clamped["sw_lat"] >= clamped["ne_lat"] or clamped["sw_lng"] >= clamped["ne_lng"]:
        raise ValidationError("Map bounds are outside the supported area")

    return clamped


def validate_bounds_params(bounds: Dict[str, float], clamp: bool = True) -> Dict[str, float]:
    """
    Validate NE/SW bounds and clamp them to the country envelope.

    Args:
        bounds: Dict with ne_lat, ne_lng, sw_lat, sw_lng
        clamp: Whether to clamp to the country envelope

    Returns:
        Validated (and possibly clamped) bounds

    Raises:
        ValidationError: On out-of-range coordinates or inverted corners
    """
    for key in ("ne_lat", "sw_lat"):
        if not -90 <= bounds[key] <= 90:
            raise ValidationError(f"{key} must be between -90 and 90")
    for key in ("ne_lng", "sw_lng"):
        if not -180 <= bounds[key] <= 180:
            raise ValidationError(f"{key} must be between -180 and 180")

    if bounds["sw_lat"] >= bounds["ne_lat"]:
        raise ValidationError("sw_lat must be lower than ne_lat")
    if bounds["sw_lng"] >= bounds["ne_lng"]:
        raise ValidationError("sw_lng must be lower than ne_lng")

    return clamp_to_country(bounds) if clamp else dict(bounds)


def parse_bounds_params(params: ParamSource, clamp: bool = True) -> Optional[Dict[str, float]]:
    """
    Read `ne_lat`, `ne_lng`, `sw_lat`, `sw_lng` from the query string.

    Returns:
        Validated bounds, or None when any corner is missing or non-numeric
    """
    raw: Dict[str, float] = {}
    for key in BOUNDS_KEYS:
        values = _get_all(params, key)
        number = _parse_float(values[0]) if values else None
        if number is None:
            return None
        raw[key] = number
    return validate_bounds_params(raw, clamp=clamp)


def viewport_to_bounds(
    latitude: float,
    longitude: float,
    zoom: float,
    aspect_ratio: float = 1.0
) -> Dict[str, float]:
    """
    Approximate the visible box of a web-mercator viewport.

    At zoom z a square viewport spans 360 / 2**z degrees of longitude, so the
    half-width is 180 / 2**z (scaled by the viewport aspect ratio). The
    latitude half-height shrinks by cos(latitude), never below MIN_HALF_SPAN.

    Returns:
        Bounds dict clamped to valid coordinate ranges
    """
    lng_half = 180 / (2 ** zoom) * aspect_ratio
    lat_half = max((180 / (2 ** zoom)) * math.cos(math.radians(latitude)), MIN_HALF_SPAN)

    return {
        "ne_lat": min(latitude + lat_half, 90.0),
        "ne_lng": min(longitude + lng_half, 180.0),
        "sw_lat": max(latitude - lat_half, -90.0),
        "sw_lng": max(longitude - lng_half, -180.0),
    }


def has_map_params(params: ParamSource) -> bool:
    return all(_get_all(params, key) for key in ("lat", "lng", "zoom"))


def parse_map_params(
    params: ParamSource,
    fallback: Optional[Dict[str, float]] = None
) -> Dict[str, float]:
    """
    Read the `lat`, `lng`, `zoom` viewport, falling back when any is missing or invalid.
    """
    fallback = dict(fallback or DEFAULT_VIEWPORT)

    values = {}
    for key in ("lat", "lng", "zoom"):
        raw = _get_all(params, key)
        number = _parse_float(raw[0]) if raw else None
        if number is None:
            return fallback
        values[key] = number

    if not -90 <= values["lat"] <= 90:
        return fallback
    if not -180 <= values["lng"] <= 180:
        return fallback
    if not MIN_ZOOM <= values["zoom"] <= MAX_ZOOM:
        return fallback

    return {
        "latitude": values["lat"],
        "longitude": values["lng"],
        "zoom": values["zoom"],
    }


def build_map_url(viewport: Dict[str, float], base_path: str = "/mapa") -> str:
    """Shareable map URL with coordinates rounded to 4 decimals and an integer zoom."""
    lat = f"{viewport['latitude']:.{COORDINATE_DECIMALS}f}"
    lng = f"{viewport['longitude']:.{COORDINATE_DECIMALS}f}"
    zoom = int(round(viewport["zoom"]))
    return f"{base_path}?lat={lat}&lng={lng}&zoom={zoom}"
