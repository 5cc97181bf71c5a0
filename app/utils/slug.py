"""
URL slug helpers for property links of the form `<uuid>-<title-slug>`.
"""

import re
import unicodedata
from typing import Optional, Tuple, Union
import uuid

# Letters that NFD normalization does not decompose into ASCII + combining mark
SPECIAL_CHAR_MAP = {
    "ø": "o",
    "æ": "ae",
    "đ": "d",
    "ð": "d",
    "þ": "th",
    "ß": "ss",
}

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
HEX8_PATTERN = re.compile(r"^[0-9a-fA-F]{8}$")


def generate_slug(text: Optional[str], max_length: int = 50) -> str:
    """
    Build a lowercase ASCII slug from free text.

    Args:
        text: Source text, usually a listing title
        max_length: Maximum slug length

    Returns:
        Slug such as "casa-moderna-en-cuenca", or "" when nothing survives
    """
    if not text:
        return ""

    value = unicodedata.normalize("NFD", text.lower())
    value = "".join(ch for ch in value if not unicodedata.combining(ch))

    for source, replacement in SPECIAL_CHAR_MAP.items():
        value = value.replace(source, replacement)

    value = value.strip()
    value = re.sub(r"[^\w\s-]", "", value, flags=re.ASCII)
    value = re.sub(r"\s+", "-", value)
    value = re.sub(r"-+", "-", value)
    value = value.strip("-")

    return value[:max_length].rstrip("-")


def is_slug_valid(slug: str) -> bool:
    return bool(slug) and bool(SLUG_PATTERN.match(slug))


def build_property_slug_param(property_id: Union[uuid.UUID, str], title: Optional[str]) -> str:
    """Combine id and title slug for a property URL."""
    slug = generate_slug(title)
    return f"{property_id}-{slug}" if slug else str(property_id)


def parse_id_slug_param(param: str) -> Tuple[str, Optional[str]]:
    """
    Split an `<id>-<slug>` path parameter.

    A leading UUID (five dash-separated groups, the first of eight hex digits)
    is taken whole; otherwise the first dash-separated part is the id.

    Returns:
        Tuple of (id, slug or None)
    """
    parts = param.split("-")

    if HEX8_PATTERN.match(parts[0]) and len(parts) >= 5:
        candidate = "-".join(parts[:5])
        try:
            uuid.UUID(candidate)
        except ValueError:
            pass
        else:
            slug = "-".join(parts[5:]) or None
            return candidate, slug

    slug = "-".join(parts[1:]) or None
    return parts[0], slug
