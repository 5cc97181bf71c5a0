"""
Favorite model linking a user to a saved property.
"""

from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
import uuid
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.property import Property


class Favorite(Base):
    """A property saved by a user. Unique per (user, property)."""

    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_favorites_user_property"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="User who saved the property"
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Saved property"
    )

    user: Mapped["User"] = relationship("User", back_populates="favorites", lazy="noload")
    property: Mapped["Property"] = relationship("Property", lazy="noload")

    def __repr__(self) -> str:
        return f"<Favorite(user_id={self.user_id}, property_id={self.property_id})>"
