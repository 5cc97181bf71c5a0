"""
Appointment model for property visits booked by clients with listing agents.
"""

from sqlalchemy import Text, ForeignKey, DateTime, Enum as SQLEnum, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
from datetime import datetime
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.property import Property


class AppointmentStatus(str, enum.Enum):
    """Lifecycle of a property visit."""
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class Appointment(Base):
    """
    Property visit requested by a client.
    `scheduled_at` is stored in UTC; availability rules are evaluated in the
    configured business timezone.
    """

    __tablename__ = "appointments"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Client who booked the visit"
    )

    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Property to visit"
    )

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Listing agent at booking time"
    )

    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Start of the visit (UTC)"
    )

    status: Mapped[AppointmentStatus] = mapped_column(
        SQLEnum(AppointmentStatus),
        nullable=False,
        default=AppointmentStatus.PENDING,
        index=True,
        comment="Appointment status"
    )

    notes: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Client notes for the agent"
    )

    user: Mapped["User"] = relationship("User", foreign_keys=[user_id], lazy="selectin")
    agent: Mapped["User"] = relationship("User", foreign_keys=[agent_id], lazy="selectin")
    property: Mapped["Property"] = relationship("Property", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Appointment(id={self.id}, property_id={self.property_id}, status={self.status})>"


property_schedule_index = Index(
    "idx_appointments_property_scheduled",
    Appointment.property_id,
    Appointment.scheduled_at
)

agent_schedule_index = Index(
    "idx_appointments_agent_scheduled",
    Appointment.agent_id,
    Appointment.scheduled_at
)
