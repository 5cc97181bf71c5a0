"""
User model with authentication, roles and subscription tiers.
Handles marketplace accounts for clients, agents and administrators.
"""

from sqlalchemy import String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from app.utils.auth import hash_password as _hash_password, verify_password as _verify_password
from email_validator import validate_email, EmailNotValidError
import enum
import uuid
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.property import Property
    from app.models.favorite import Favorite

class UserRole(str, enum.Enum):
    """User role enumeration for role-based access control."""
    CLIENT = "CLIENT"
    AGENT = "AGENT"
    ADMIN = "ADMIN"


class SubscriptionTier(str, enum.Enum):
    """Subscription plan that gates listing, media and feature limits."""
    FREE = "FREE"
    PLUS = "PLUS"
    BUSINESS = "BUSINESS"
    PRO = "PRO"


class User(Base):
    """
    User model for authentication and authorization.
    Clients browse, favorite and book visits; agents publish listings.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        comment="User email address - must be unique and valid"
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hashed password"
    )

    name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="Display name"
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Contact phone number"
    )

    avatar: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
        comment="Avatar image URL"
    )

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        nullable=False,
        default=UserRole.CLIENT,
        index=True,
        comment="User role for access control"
    )

    subscription_tier: Mapped[SubscriptionTier] = mapped_column(
        SQLEnum(SubscriptionTier),
        nullable=False,
        default=SubscriptionTier.FREE,
        index=True,
        comment="Subscription plan"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the user account is active"
    )

    # Relationships
    properties: Mapped[List["Property"]] = relationship(
        "Property",
        back_populates="agent",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload"
    )

    favorites: Mapped[List["Favorite"]] = relationship(
        "Favorite",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload"
    )

    def __repr__(self) -> str:
        """String representation of the user."""
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    @classmethod
    def validate_email_format(cls, email: str) -> str:
        """
        Validate email format using email-validator.

        Args:
            email: Email address to validate

        Returns:
            Normalized email address

        Raises:
            ValueError: If email format is invalid
        """
        try:
            valid_email = validate_email(email, check_deliverability=False)
            return valid_email.normalized.lower()
        except EmailNotValidError as e:
            raise ValueError(f"Invalid email format: {str(e)}")

    @classmethod
    def hash_password(cls, password: str) -> str:
        """Hash a password using bcrypt."""
        return _hash_password(password)

    def verify_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""
        return _verify_password(password, self.hashed_password)

    @property
    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == UserRole.ADMIN

    @property
    def is_agent(self) -> bool:
        """Check if user has agent role."""
        return self.role == UserRole.AGENT

    @property
    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT

    def can_manage_property(self, property_agent_id: uuid.UUID) -> bool:
        """
        Check if user can manage a specific property.

        Args:
            property_agent_id: UUID of the property's agent

        Returns:
            True if user can manage the property, False otherwise
        """
        # Admins can manage all properties
        if self.is_admin:
            return True

        return self.id == property_agent_id

    def to_dict(self) -> dict:
        """Convert user to dictionary (excluding sensitive data)."""
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "phone": self.phone,
            "avatar": self.avatar,
            "role": self.role.value,
            "subscription_tier": self.subscription_tier.value,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
