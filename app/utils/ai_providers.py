"""
Completion API providers.
Description generation and natural-language search go through a provider so the
backing API can be swapped or mocked.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional
import logging

import httpx

from app.config import settings

logger = logging.getLogger(__name__)


class CompletionError(Exception):
    """Raised when the completion API fails or returns nothing."""
    pass


@dataclass
class CompletionResponse:
    """Normalized completion result."""
    text: str
    model: str
    tokens_used: Optional[int] = None


class BaseCompletionProvider(ABC):
    """Base class for completion providers."""

    provider_name: str = "base"

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> CompletionResponse:
        """
        Generate a completion.

        Args:
            system_prompt: System instructions
            user_prompt: User message
            temperature: Sampling temperature (0.0-1.0)
            max_tokens: Maximum tokens to generate

        Returns:
            CompletionResponse with the generated text

        Raises:
            CompletionError: If the API call fails
        """
        pass


class HTTPCompletionProvider(BaseCompletionProvider):
    """OpenAI-compatible `/chat/completions` client."""

    provider_name = "http"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.api_key = api_key or settings.completion_api_key
        self.base_url = (base_url or settings.completion_base_url).rstrip("/")
        self.model = model or settings.completion_model
        self.timeout = timeout or settings.completion_timeout

        if not self.api_key:
            raise ValueError("COMPLETION_API_KEY is not configured")

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> CompletionResponse:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout) as client:
                response = await client.post("/chat/completions", json=payload, headers=headers)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException:
            raise CompletionError(f"Request to {self.base_url} timed out")
        except httpx.HTTPStatusError as e:
            raise CompletionError(f"HTTP error from completion API: {e.response.status_code}")
        except httpx.HTTPError as e:
            raise CompletionError(f"Error calling completion API: {str(e)}")
        except ValueError:
            raise CompletionError("Completion API returned a non-JSON body")

        if not isinstance(data, dict):
            raise CompletionError("Unexpected completion API response format")

        text = _extract_text(data)
        if not text:
            raise CompletionError("No response from completion API")

        usage = data.get("usage")
        return CompletionResponse(
            text=text,
            model=data.get("model") or self.model,
            tokens_used=usage.get("total_tokens") if isinstance(usage, dict) else None,
        )


def _extract_text(data: Dict[str, Any]) -> str:
    """First choice's message content, or "" when the shape is not as expected."""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    content = message.get("content") if isinstance(message, dict) else None
    return content.strip() if isinstance(content, str) else ""


def get_completion_provider() -> Optional[BaseCompletionProvider]:
    """Configured provider, or None when no API key is set."""
    if not settings.completion_api_key:
        logger.warning("Completion API key not configured; AI features disabled")
        return None
    return HTTPCompletionProvider()
