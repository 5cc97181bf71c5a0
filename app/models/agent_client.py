"""
AgentClient model: the agent's CRM record for a client lead.
"""

from sqlalchemy import String, Text, ForeignKey, Enum as SQLEnum, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base
import enum
import uuid
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.property import Property


class LeadStatus(str, enum.Enum):
    """Sales pipeline stage of a client lead."""
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    INTERESTED = "INTERESTED"
    NEGOTIATING = "NEGOTIATING"
    CLOSED_WON = "CLOSED_WON"
    CLOSED_LOST = "CLOSED_LOST"


class AgentClient(Base):
    """
    Lead captured when a client interacts with one of the agent's listings.
    Unique per (agent, client).
    """

    __tablename__ = "agent_clients"
    __table_args__ = (
        UniqueConstraint("agent_id", "client_id", name="uq_agent_clients_agent_client"),
    )

    agent_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Agent who owns the lead"
    )

    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Client user"
    )

    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("properties.id", ondelete="SET NULL"),
        nullable=True,
        comment="Listing that originated the lead"
    )

    status: Mapped[LeadStatus] = mapped_column(
        SQLEnum(LeadStatus),
        nullable=False,
        default=LeadStatus.NEW,
        index=True,
        comment="Pipeline stage"
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="Agent notes")

    source: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        comment="Interaction that created the lead (favorite, appointment, ...)"
    )

    utm_source: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    utm_medium: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    utm_campaign: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    client: Mapped["User"] = relationship("User", foreign_keys=[client_id], lazy="selectin")
    property: Mapped[Optional["Property"]] = relationship("Property", lazy="noload")

    def __repr__(self) -> str:
        return f"<AgentClient(agent_id={self.agent_id}, client_id={self.client_id}, status={self.status})>"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "agent_id": str(self.agent_id),
            "client_id": str(self.client_id),
            "property_id": str(self.property_id) if self.property_id else None,
            "status": self.status.value,
            "notes": self.notes,
            "source": self.source,
            "utm_source": self.utm_source,
            "utm_medium": self.utm_medium,
            "utm_campaign": self.utm_campaign,
            "client": {
                "id": str(self.client.id),
                "name": self.client.name,
                "email": self.client.email,
                "phone": self.client.phone,
            } if self.client else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
