"""
AI service: natural-language property search and listing description drafts.
Both go through a completion provider; without one configured the features
report the service as unavailable.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.property import PropertyCategory, TransactionType
from app.models.user import User
from app.repositories.property import PropertyRepository
from app.schemas.ai import DescriptionRequest
from app.utils.ai_providers import BaseCompletionProvider, CompletionError, get_completion_provider
from app.utils.exceptions import (
    APIException,
    ServiceUnavailableError,
    TierLimitExceededError,
    ValidationError,
)
from app.utils.permissions import can_use_ai_description
from app.utils.search_parser import (
    MIN_CONFIDENCE,
    SEARCH_SYSTEM_PROMPT,
    SearchParseError,
    build_filter_summary,
    filters_to_property_filters,
    parse_completion_filters,
)
from app.utils.serialization import decimal_to_number
import logging

logger = logging.getLogger(__name__)

MAX_QUERY_LENGTH = 500
SEARCH_RESULT_LIMIT = 50

DESCRIPTION_SYSTEM_PROMPT = (
    "Eres un experto en marketing inmobiliario en Ecuador. "
    "Generas descripciones profesionales y atractivas para propiedades."
)

CATEGORY_NAMES = {
    PropertyCategory.HOUSE: "casa",
    PropertyCategory.APARTMENT: "apartamento",
    PropertyCategory.SUITE: "suite",
    PropertyCategory.VILLA: "villa",
    PropertyCategory.PENTHOUSE: "penthouse",
    PropertyCategory.DUPLEX: "dúplex",
    PropertyCategory.LOFT: "loft",
    PropertyCategory.LAND: "terreno",
    PropertyCategory.COMMERCIAL: "local comercial",
    PropertyCategory.OFFICE: "oficina",
    PropertyCategory.WAREHOUSE: "bodega",
    PropertyCategory.FARM: "finca",
}


def _format_number(value) -> str:
    number = decimal_to_number(value) or 0
    return f"{number:g}" if number != int(number) else f"{int(number)}"


def build_description_prompt(data: DescriptionRequest) -> str:
    """Spanish prompt describing the listing for the completion API."""
    transaction_text = "venta" if data.transaction_type == TransactionType.SALE else "alquiler"
    category_text = CATEGORY_NAMES.get(data.category, data.category.value.lower())

    extra_lines = []
    if data.city:
        extra_lines.append(f"Ubicación: {data.city}.")
    if data.price:
        extra_lines.append(f"Precio: ${decimal_to_number(data.price):,.0f}.")
    if data.amenities:
        extra_lines.append(f"Amenidades: {', '.join(data.amenities)}.")

    lines = [
        "Genera una descripción profesional y atractiva para una propiedad inmobiliaria en Ecuador.",
        "",
        "DATOS DE LA PROPIEDAD:",
        f"- Tipo: {category_text} en {transaction_text}",
        f"- Habitaciones: {data.bedrooms}",
        f"- Baños: {_format_number(data.bathrooms)}",
        f"- Área: {_format_number(data.area)}m²",
        *extra_lines,
        "",
        "INSTRUCCIONES:",
        "1. Escribe en español de Ecuador",
        "2. Máximo 150 palabras",
        "3. Tono profesional pero cercano",
        "4. Destaca las características principales",
        "5. Incluye un llamado a la acción al final",
        "6. NO inventes datos que no estén en la información proporcionada",
        "7. Usa emojis moderadamente (máximo 3)",
        "",
        "FORMATO:",
        "Devuelve SOLO la descripción, sin títulos ni encabezados.",
    ]
    return "\n".join(lines)


class AIService:
    """Completion-backed features."""

    def __init__(self, db_session: AsyncSession, provider: Optional[BaseCompletionProvider] = None):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self._provider = provider

    def _get_provider(self) -> BaseCompletionProvider:
        provider = self._provider or get_completion_provider()
        if provider is None:
            raise ServiceUnavailableError("AI features are not configured")
        return provider

    async def generate_description(self, data: DescriptionRequest, current_user: User) -> str:
        """
        Draft a listing description.

        Args:
            data: Listing characteristics
            current_user: Requesting agent

        Returns:
            Generated description text

        Raises:
            TierLimitExceededError: If the user's plan doesn't include AI descriptions
            ServiceUnavailableError: If the completion API is unavailable or fails
        """
        if not can_use_ai_description(current_user.subscription_tier):
            raise TierLimitExceededError("Las descripciones con IA están disponibles desde el plan Business")

        provider = self._get_provider()
        logger.info(f"Generating AI description for user {current_user.id}")

        try:
            response = await provider.complete(
                DESCRIPTION_SYSTEM_PROMPT,
                build_description_prompt(data),
                temperature=0.7,
                max_tokens=500
            )
        except CompletionError as e:
            logger.error(f"Description generation failed for user {current_user.id}: {e}")
            raise ServiceUnavailableError("No se pudo generar la descripción")

        description = (response.text or "").strip()
        if not description:
            logger.error(f"Empty description returned for user {current_user.id}")
            raise ServiceUnavailableError("No se pudo generar la descripción")

        logger.info(f"Generated description of {len(description)} characters for user {current_user.id}")
        return description

    async def ai_search(self, query: str) -> Dict[str, Any]:
        """
        Search listings with a natural-language query.

        Args:
            query: Buyer's query, e.g. "casa en Cuenca bajo $200k"

        Returns:
            Dictionary with query, properties, filter summary, total and confidence

        Raises:
            ValidationError: If the query is empty, too long, unreadable or too vague
            ServiceUnavailableError: If the completion API is unavailable or fails
        """
        if not query or not query.strip():
            raise ValidationError("Search query cannot be empty")
        if len(query) > MAX_QUERY_LENGTH:
            raise ValidationError(f"Search query is too long (max {MAX_QUERY_LENGTH} characters)")

        provider = self._get_provider()
        logger.info(f"AI search query: {query}")

        try:
            response = await provider.complete(SEARCH_SYSTEM_PROMPT, query, temperature=0.3, max_tokens=500)
            parsed = parse_completion_filters(response.text)
        except CompletionError as e:
            logger.error(f"AI search completion failed: {e}")
            raise ServiceUnavailableError(f"Failed to parse search query: {str(e)}")
        except SearchParseError as e:
            logger.error(f"AI search response unreadable: {e}")
            raise ValidationError(str(e))

        logger.debug(f"Parsed filters {parsed.filters} with confidence {parsed.confidence}%")

        if not parsed.is_confident:
            logger.warning(f"Query confidence {parsed.confidence}% is below {MIN_CONFIDENCE}%")
            raise ValidationError(
                f"Your search is too vague (confidence: {parsed.confidence}%). "
                f'Please be more specific (e.g., "3 bedroom apartment under $200k in Cuenca")'
            )

        if parsed.is_low_confidence:
            logger.warning(f"Low confidence parse ({parsed.confidence}%). Results may be incomplete.")

        try:
            filters = filters_to_property_filters(parsed.filters)
            properties, _ = await self.property_repo.list_properties(filters, take=SEARCH_RESULT_LIMIT)
        except APIException:
            raise
        except Exception as e:
            logger.error(f"AI search query failed: {e}")
            raise ValidationError(f"Failed to run search: {str(e)}")

        results = [
            {
                "id": str(prop.id),
                "title": prop.title,
                "description": prop.description,
                "price": decimal_to_number(prop.price) or 0,
                "city": prop.city,
                "address": prop.address,
                "category": prop.category,
                "bedrooms": prop.bedrooms,
                "bathrooms": decimal_to_number(prop.bathrooms),
                "latitude": decimal_to_number(prop.latitude),
                "longitude": decimal_to_number(prop.longitude),
            }
            for prop in properties
        ]

        logger.info(f"AI search found {len(results)} properties")
        return {
            "query": query,
            "properties": results,
            "filter_summary": build_filter_summary(parsed.filters),
            "total_results": len(results),
            "confidence": parsed.confidence,
        }
