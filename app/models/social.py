"""
Listing engagement records: detail page views and shares.
Visitors are identified only by a hashed IP and a reduced user agent.
"""

from sqlalchemy import Enum as SQLEnum, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base
import enum
import uuid
from typing import Optional


class SharePlatform(str, enum.Enum):
    FACEBOOK = "FACEBOOK"
    TWITTER = "TWITTER"
    WHATSAPP = "WHATSAPP"
    LINKEDIN = "LINKEDIN"
    EMAIL = "EMAIL"
    COPY_LINK = "COPY_LINK"
    INSTAGRAM = "INSTAGRAM"
    TIKTOK = "TIKTOK"


class PropertyView(Base):
    """One view of a listing detail page."""

    __tablename__ = "property_views"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Viewed property"
    )

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Signed-in viewer, if any"
    )

    ip_hash: Mapped[str] = mapped_column(String(64), nullable=False, comment="SHA-256 of the client IP")

    user_agent: Mapped[str] = mapped_column(String(100), nullable=False, comment="Browser and OS only")

    def __repr__(self) -> str:
        return f"<PropertyView(property_id={self.property_id})>"


class PropertyShare(Base):
    """One share of a listing to a social platform."""

    __tablename__ = "property_shares"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Shared property"
    )

    platform: Mapped[SharePlatform] = mapped_column(
        SQLEnum(SharePlatform),
        nullable=False,
        comment="Where the listing was shared"
    )

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Signed-in sharer, if any"
    )

    ip_hash: Mapped[str] = mapped_column(String(64), nullable=False, comment="SHA-256 of the client IP")

    user_agent: Mapped[str] = mapped_column(String(100), nullable=False, comment="Browser and OS only")

    def __repr__(self) -> str:
        return f"<PropertyShare(property_id={self.property_id}, platform={self.platform.value})>"
