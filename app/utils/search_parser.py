"""
Natural-language search parsing.
Turns a completion response into validated search filters and maps the
Spanish vocabulary used by buyers onto listing enums.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import json
import logging
import re

from app.models.property import PropertyCategory, TransactionType
from app.schemas.property import PropertyFilters

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 75
MIN_CONFIDENCE = 30
WARN_CONFIDENCE = 50
MIN_SEARCH_PRICE = 10_000
MAX_SEARCH_PRICE = 1_000_000
MAX_ROOMS = 10

SEARCH_SYSTEM_PROMPT = """You are an expert real estate search assistant for the Ecuador market, specifically Cuenca and surrounding areas.

Extract structured search parameters from natural language queries in Spanish.

1. LOCATION: city names, neighborhoods or regional clues ("centro" -> Zona Centro, "norte" -> Zona Norte). Default city: "Cuenca".
2. PROPERTY TYPE: one of casa, apartamento, suite, terreno, local.
3. PRICE: min/max in USD ("bajo $100k" -> maxPrice 100000). Prices below $10k or above $1M are parsing errors, return null.
4. BEDROOMS/BATHROOMS: "X habitaciones", "X baños". Valid range 0-10.
5. FEATURES (garaje, jardín, piscina) are separate from AMENITIES (amueblado, sin amueblar).
6. TRANSACTION: "VENTA" or "ARRIENDO" (arriendo, alquiler, renta mean ARRIENDO).
7. CONFIDENCE 0-100: below 30 means the query is too vague to filter.

Return ONLY a JSON object with these fields:
{"city": string|null, "address": string|null, "category": string|null,
 "minPrice": number|null, "maxPrice": number|null, "bedrooms": number|null,
 "bathrooms": number|null, "features": [string], "amenities": [string],
 "transactionType": "VENTA"|"ARRIENDO"|null, "confidence": number, "reasoning": string}

Never invent prices, bedrooms or locations that are not in the query."""

LOCATION_MAP: Dict[str, str] = {
    # Cities
    "cuenca": "Cuenca",
    "cueca": "Cuenca",
    "gualaceo": "Gualaceo",
    "gualacéo": "Gualaceo",
    "paute": "Paute",
    "azogues": "Azogues",
    # Neighborhoods
    "el ejido": "El Ejido",
    "el ejdo": "El Ejido",
    "ejido": "El Ejido",
    "zona centro": "Zona Centro",
    "el centro": "Zona Centro",
    "centro": "Zona Centro",
    "centro histórico": "Zona Centro",
    "estadio": "Estadio",
    "belén": "Belén",
    "belen": "Belén",
    "totoracocha": "Totoracocha",
    "monay": "Monay",
    "hermano miguel": "Hermano Miguel",
    "machangara": "Machangara",
    # Directions
    "norte": "Zona Norte",
    "sur": "Zona Sur",
    "este": "Zona Este",
    "oeste": "Zona Oeste",
    "zona norte": "Zona Norte",
    "zona sur": "Zona Sur",
    "zona este": "Zona Este",
    "zona oeste": "Zona Oeste",
    # Landmarks
    "san blas": "Zona Centro",
    "calle larga": "Zona Centro",
}

CATEGORY_MAP: Dict[str, PropertyCategory] = {
    "casa": PropertyCategory.HOUSE,
    "house": PropertyCategory.HOUSE,
    "apartamento": PropertyCategory.APARTMENT,
    "apartment": PropertyCategory.APARTMENT,
    "apto": PropertyCategory.APARTMENT,
    "departamento": PropertyCategory.APARTMENT,
    "suite": PropertyCategory.SUITE,
    "villa": PropertyCategory.VILLA,
    "penthouse": PropertyCategory.PENTHOUSE,
    "duplex": PropertyCategory.DUPLEX,
    "loft": PropertyCategory.LOFT,
    "terreno": PropertyCategory.LAND,
    "land": PropertyCategory.LAND,
    "lote": PropertyCategory.LAND,
    "local": PropertyCategory.COMMERCIAL,
    "commercial": PropertyCategory.COMMERCIAL,
    "local comercial": PropertyCategory.COMMERCIAL,
    "oficina": PropertyCategory.OFFICE,
    "office": PropertyCategory.OFFICE,
    "bodega": PropertyCategory.WAREHOUSE,
    "warehouse": PropertyCategory.WAREHOUSE,
    "finca": PropertyCategory.FARM,
    "farm": PropertyCategory.FARM,
    "hacienda": PropertyCategory.FARM,
}

TRANSACTION_TYPE_MAP: Dict[str, TransactionType] = {
    "venta": TransactionType.SALE,
    "sale": TransactionType.SALE,
    "vendo": TransactionType.SALE,
    "compra": TransactionType.SALE,
    "arriendo": TransactionType.RENT,
    "rent": TransactionType.RENT,
    "arrendamiento": TransactionType.RENT,
    "renta": TransactionType.RENT,
    "alquiler": TransactionType.RENT,
}

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


class SearchParseError(ValueError):
    """Raised when a completion cannot be read as search filters."""


@dataclass
class ParsedSearch:
    """Filters extracted from a natural-language query."""

    filters: Dict[str, Any] = field(default_factory=dict)
    confidence: int = DEFAULT_CONFIDENCE
    reasoning: str = ""

    @property
    def is_confident(self) -> bool:
        return self.confidence >= MIN_CONFIDENCE

    @property
    def is_low_confidence(self) -> bool:
        return self.confidence < WARN_CONFIDENCE


def _out_of_range(value: Any, low: float, high: float) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return True
    return value < low or value > high


def parse_completion_filters(content: str) -> ParsedSearch:
    """
    Read the JSON returned by the completion API.

    Code fences are stripped, missing confidence defaults to 75 and values
    outside the plausible market ranges are dropped.

    Raises:
        SearchParseError: If the content is empty or not a JSON object
    """
    if not content or not content.strip():
        raise SearchParseError("No response from completion provider")

    cleaned = _CODE_FENCE.sub("", content).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise SearchParseError(f"Failed to parse AI response: {e.msg}")

    if not isinstance(data, dict):
        raise SearchParseError("Failed to parse AI response: expected a JSON object")

    confidence = data.pop("confidence", None)
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE
    reasoning = data.pop("reasoning", None) or ""
    filters = {key: value for key, value in data.items() if value is not None}

    for key in ("minPrice", "maxPrice"):
        if key in filters and _out_of_range(filters[key], MIN_SEARCH_PRICE, MAX_SEARCH_PRICE):
            logger.warning(f"Price validation: {key} {filters[key]} outside [$10k-$1M], dropping")
            filters.pop(key)

    for key in ("bedrooms", "bathrooms"):
        if key in filters and _out_of_range(filters[key], 0, MAX_ROOMS):
            logger.warning(f"Room validation: {key} {filters[key]} outside [0-10], dropping")
            filters.pop(key)

    try:
        confidence = int(confidence)
    except (TypeError, ValueError):
        confidence = DEFAULT_CONFIDENCE

    return ParsedSearch(filters=filters, confidence=confidence, reasoning=str(reasoning))


def fuzzy_match_location(value: Optional[str]) -> Optional[str]:
    """
    Normalize a city or neighborhood name.

    Exact keys win; a single word also matches the first word of a key.
    Unknown names are returned unchanged.
    """
    if not value:
        return None

    normalized = value.lower().strip()
    if normalized in LOCATION_MAP:
        return LOCATION_MAP[normalized]

    words = normalized.split(" ")
    if len(words) == 1:
        for key, mapped in LOCATION_MAP.items():
            if key.split(" ")[0] == words[0]:
                return mapped

    return value


def map_category_to_enum(value: Optional[str]) -> Optional[PropertyCategory]:
    if not value:
        return None
    return CATEGORY_MAP.get(value.lower().strip())


def map_transaction_type_to_enum(value: Optional[str]) -> Optional[TransactionType]:
    if not value:
        return None
    return TRANSACTION_TYPE_MAP.get(value.lower().strip())


def filters_to_property_filters(filters: Dict[str, Any]) -> PropertyFilters:
    """Convert parsed search filters to listing filters. The address becomes a free-text search."""
    data: Dict[str, Any] = {}

    if filters.get("city"):
        data["city"] = fuzzy_match_location(str(filters["city"]))

    if filters.get("address"):
        data["search"] = fuzzy_match_location(str(filters["address"]))

    category = map_category_to_enum(filters.get("category"))
    if category:
        data["category"] = category

    transaction_type = map_transaction_type_to_enum(filters.get("transactionType"))
    if transaction_type:
        data["transaction_type"] = transaction_type

    if filters.get("minPrice"):
        data["min_price"] = float(filters["minPrice"])
    if filters.get("maxPrice"):
        data["max_price"] = float(filters["maxPrice"])

    if filters.get("bedrooms"):
        data["bedrooms"] = int(filters["bedrooms"])
    if filters.get("bathrooms"):
        data["bathrooms"] = float(filters["bathrooms"])

    return PropertyFilters(**data)


def _format_thousands(value: float) -> str:
    return f"${value / 1000:.0f}k"


def build_filter_summary(filters: Dict[str, Any]) -> Dict[str, Any]:
    """Human-readable summary of the filters used for a search."""
    summary: Dict[str, Any] = {}

    for key in ("city", "address", "category"):
        if filters.get(key):
            summary[key] = filters[key]

    min_price, max_price = filters.get("minPrice"), filters.get("maxPrice")
    if min_price or max_price:
        low = _format_thousands(min_price) if min_price else ""
        high = _format_thousands(max_price) if max_price else ""
        separator = " - " if low and high else ""
        summary["priceRange"] = f"{low}{separator}{high}"

    if filters.get("bedrooms"):
        summary["bedrooms"] = filters["bedrooms"]

    features: List[str] = filters.get("features") or []
    if features:
        summary["features"] = features

    return summary
