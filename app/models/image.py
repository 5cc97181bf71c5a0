"""
PropertyImage model for listing photos.
Images are stored by URL and displayed in ascending `order`.
"""

from sqlalchemy import String, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
import uuid
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.models.property import Property


class PropertyImage(Base):
    """Photo attached to a property listing."""

    __tablename__ = "property_images"

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the property this image belongs to"
    )

    url: Mapped[str] = mapped_column(
        String(1000),
        nullable=False,
        comment="Public URL of the stored image"
    )

    alt: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Alternative text"
    )

    order: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Display position within the gallery"
    )

    property: Mapped["Property"] = relationship(
        "Property",
        back_populates="images",
        lazy="noload"
    )

    def __repr__(self) -> str:
        return f"<PropertyImage(id={self.id}, property_id={self.property_id}, order={self.order})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "url": self.url,
            "alt": self.alt,
            "order": self.order,
            "property_id": str(self.property_id),
        }


property_order_index = Index(
    "idx_property_images_property_order",
    PropertyImage.property_id,
    PropertyImage.order
)
