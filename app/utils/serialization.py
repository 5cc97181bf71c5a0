"""
Serialization helpers turning ORM rows into JSON-safe dictionaries.
Decimal columns (price, bathrooms, area, coordinates) are emitted as numbers.
"""

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional
import math

from app.models.property import Property
from app.utils.availability import ensure_utc
from app.utils.slug import generate_slug


def decimal_to_number(value: Any) -> Optional[float]:
    """
    Convert a numeric value (Decimal, int, float) to float.

    Zero is preserved; None, NaN and infinite values become None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Decimal):
        if not value.is_finite():
            return None
        return float(value)

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _enum_value(value) -> Any:
    return getattr(value, "value", value)


def serialize_agent(agent) -> Optional[Dict[str, Any]]:
    """Public agent card shown on a listing."""
    if agent is None:
        return None
    return {
        "id": str(agent.id),
        "name": agent.name,
        "email": agent.email,
        "phone": agent.phone,
        "avatar": agent.avatar,
    }


def serialize_property(
    property_obj: Property,
    include_agent: bool = False,
    include_images: bool = True
) -> Dict[str, Any]:
    """
    Convert a property to a JSON-safe dictionary.

    Args:
        property_obj: Property instance with relationships loaded
        include_agent: Whether to embed the agent card
        include_images: Whether to embed images ordered by `order`

    Returns:
        Dictionary with numeric prices and coordinates
    """
    price = decimal_to_number(property_obj.price)

    result: Dict[str, Any] = {
        "id": str(property_obj.id),
        "slug": generate_slug(property_obj.title),
        "title": property_obj.title,
        "description": property_obj.description,
        "price": price if price is not None else 0,
        "transaction_type": _enum_value(property_obj.transaction_type),
        "category": _enum_value(property_obj.category),
        "status": _enum_value(property_obj.status),
        "bedrooms": property_obj.bedrooms,
        "bathrooms": decimal_to_number(property_obj.bathrooms),
        "area": decimal_to_number(property_obj.area),
        "address": property_obj.address,
        "city": property_obj.city,
        "state": property_obj.state,
        "zip_code": property_obj.zip_code,
        "latitude": decimal_to_number(property_obj.latitude),
        "longitude": decimal_to_number(property_obj.longitude),
        "is_featured": property_obj.is_featured,
        "agent_id": str(property_obj.agent_id),
        "created_at": _isoformat(property_obj.created_at),
        "updated_at": _isoformat(property_obj.updated_at),
    }

    if include_images:
        images = sorted(property_obj.images or [], key=lambda image: image.order)
        result["images"] = [image.to_dict() for image in images]

    if include_agent:
        result["agent"] = serialize_agent(property_obj.agent)

    return result


def serialize_properties(
    properties: Iterable[Property],
    include_agent: bool = False,
    include_images: bool = True
) -> List[Dict[str, Any]]:
    return [
        serialize_property(prop, include_agent=include_agent, include_images=include_images)
        for prop in properties
    ]


def serialize_appointment(appointment) -> Dict[str, Any]:
    """Appointment with a compact property and party summary."""
    property_obj = appointment.property
    return {
        "id": str(appointment.id),
        "property_id": str(appointment.property_id),
        "user_id": str(appointment.user_id),
        "agent_id": str(appointment.agent_id),
        "scheduled_at": _isoformat(ensure_utc(appointment.scheduled_at)),
        "status": _enum_value(appointment.status),
        "notes": appointment.notes,
        "property": {
            "id": str(property_obj.id),
            "title": property_obj.title,
            "address": property_obj.address,
            "city": property_obj.city,
        } if property_obj is not None else None,
        "client": serialize_agent(appointment.user),
        "agent": serialize_agent(appointment.agent),
        "created_at": _isoformat(appointment.created_at),
    }
