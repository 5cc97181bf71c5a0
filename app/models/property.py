"""
Property model for sale and rental listings.
Handles listing data with location, pricing, status and agent ownership.
"""

from sqlalchemy import String, Text, Integer, Numeric, Boolean, Enum as SQLEnum, Index, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from decimal import Decimal
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.image import PropertyImage


class TransactionType(str, enum.Enum):
    """Whether the listing is offered for sale or for rent."""
    SALE = "SALE"
    RENT = "RENT"


class PropertyCategory(str, enum.Enum):
    """Kind of real estate being listed."""
    HOUSE = "HOUSE"
    APARTMENT = "APARTMENT"
    SUITE = "SUITE"
    VILLA = "VILLA"
    PENTHOUSE = "PENTHOUSE"
    DUPLEX = "DUPLEX"
    LOFT = "LOFT"
    LAND = "LAND"
    COMMERCIAL = "COMMERCIAL"
    OFFICE = "OFFICE"
    WAREHOUSE = "WAREHOUSE"
    FARM = "FARM"


class PropertyStatus(str, enum.Enum):
    """Listing availability status."""
    AVAILABLE = "AVAILABLE"
    PENDING = "PENDING"
    SOLD = "SOLD"
    RENTED = "RENTED"


class Property(Base):
    """
    Property listing owned by an agent.
    Coordinates are optional; only geolocated listings appear on the map.
    """

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Listing title"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed listing description"
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Asking price or monthly rent"
    )

    transaction_type: Mapped[TransactionType] = mapped_column(
        SQLEnum(TransactionType),
        nullable=False,
        index=True,
        comment="SALE or RENT"
    )

    category: Mapped[PropertyCategory] = mapped_column(
        SQLEnum(PropertyCategory),
        nullable=False,
        index=True,
        comment="Property category"
    )

    status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus),
        nullable=False,
        default=PropertyStatus.AVAILABLE,
        comment="Availability status"
    )

    bedrooms: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Number of bedrooms"
    )

    bathrooms: Mapped[Decimal] = mapped_column(
        Numeric(precision=4, scale=1),
        nullable=False,
        default=Decimal("0"),
        comment="Number of bathrooms (half baths allowed)"
    )

    area: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=True,
        comment="Built or land area in square meters"
    )

    address: Mapped[Optional[str]] = mapped_column(
        String(200),
        nullable=True,
        comment="Street address"
    )

    city: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="City"
    )

    state: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="State or province"
    )

    zip_code: Mapped[Optional[str]] = mapped_column(
        String(10),
        nullable=True,
        comment="Postal code"
    )

    latitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=8),
        nullable=True,
        comment="Latitude coordinate"
    )

    longitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=11, scale=8),
        nullable=True,
        comment="Longitude coordinate"
    )

    is_featured: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Highlighted listing (limited per tier)"
    )

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the agent who owns this listing"
    )

    # Relationships
    agent: Mapped["User"] = relationship(
        "User",
        back_populates="properties",
        lazy="selectin"
    )

    images: Mapped[List["PropertyImage"]] = relationship(
        "PropertyImage",
        back_populates="property",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="PropertyImage.order"
    )

    def __repr__(self) -> str:
        """String representation of the property."""
        return f"<Property(id={self.id}, title={self.title[:30]}, price={self.price})>"

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @property
    def primary_image(self) -> Optional["PropertyImage"]:
        """First image in display order, if any."""
        return self.images[0] if self.images else None


# Composite indexes for the common listing filters
city_status_index = Index(
    "idx_properties_city_status",
    Property.city,
    Property.status
)

price_status_index = Index(
    "idx_properties_price_status",
    Property.price,
    Property.status
)

coordinates_index = Index(
    "idx_properties_coordinates",
    Property.latitude,
    Property.longitude
)

agent_status_index = Index(
    "idx_properties_agent_status",
    Property.agent_id,
    Property.status
)
