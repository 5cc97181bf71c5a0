"""
Map bounds helpers: bounding boxes over listings and the initial map viewport.
"""

from typing import Any, Dict, Iterable, List, Optional

from app.utils.serialization import decimal_to_number

# Fallback view when there is nothing to frame (Cuenca, Ecuador)
DEFAULT_CENTER = {"latitude": -2.9, "longitude": -79.0, "zoom": 11}
SINGLE_PROPERTY_ZOOM = 16


def _coordinates(point: Any) -> Optional[tuple]:
    """Extract (lat, lng) from a dict or object, or None when incomplete."""
    if isinstance(point, dict):
        lat, lng = point.get("latitude"), point.get("longitude")
    else:
        lat, lng = getattr(point, "latitude", None), getattr(point, "longitude", None)

    lat, lng = decimal_to_number(lat), decimal_to_number(lng)
    if lat is None or lng is None:
        return None
    return lat, lng


def calculate_bounds(points: Iterable[Any]) -> Optional[Dict[str, float]]:
    """
    Compute the bounding box of all points with valid coordinates.

    Returns:
        Dict with min_lat, max_lat, min_lng, max_lng, or None if no point has coordinates
    """
    coords = [c for c in (_coordinates(p) for p in points) if c is not None]
    if not coords:
        return None

    lats = [lat for lat, _ in coords]
    lngs = [lng for _, lng in coords]
    return {
        "min_lat": min(lats),
        "max_lat": max(lats),
        "min_lng": min(lngs),
        "max_lng": max(lngs),
    }


def get_smart_viewport(points: List[Any]) -> Dict[str, Any]:
    """
    Pick the initial map view for a set of listings.

    No points give the default center, a single point is centred at street
    zoom, several points are framed by their bounding box.
    """
    if not points:
        return dict(DEFAULT_CENTER)

    if len(points) == 1:
        coords = _coordinates(points[0])
        if coords is None:
            return dict(DEFAULT_CENTER)
        return {"latitude": coords[0], "longitude": coords[1], "zoom": SINGLE_PROPERTY_ZOOM}

    bounds = calculate_bounds(points)
    if bounds is None:
        return dict(DEFAULT_CENTER)
    return {"bounds": bounds}


def bounds_to_mapbox_format(bounds: Dict[str, float]) -> List[List[float]]:
    """[[sw_lng, sw_lat], [ne_lng, ne_lat]] as expected by `fitBounds`."""
    return [
        [bounds["min_lng"], bounds["min_lat"]],
        [bounds["max_lng"], bounds["max_lat"]],
    ]
