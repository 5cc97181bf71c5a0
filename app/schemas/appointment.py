"""
Pydantic schemas for visit appointments.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict
from datetime import date, datetime
from uuid import UUID

from app.models.appointment import AppointmentStatus


class AppointmentCreate(BaseModel):
    """Visit request from a client."""

    property_id: UUID = Field(..., description="Property to visit")
    scheduled_at: datetime = Field(
        ...,
        description="Visit start; naive values are read in the business timezone",
        examples=["2026-11-03T10:00:00"]
    )
    notes: Optional[str] = Field(None, max_length=500, description="Message for the agent")

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None


class AppointmentStatusUpdate(BaseModel):
    """Agent decision on a pending visit."""

    status: AppointmentStatus = Field(..., description="CONFIRMED or CANCELLED")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in (AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED):
            raise ValueError("Status must be CONFIRMED or CANCELLED")
        return v


class AppointmentFilters(BaseModel):
    status: Optional[AppointmentStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class AppointmentParty(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    avatar: Optional[str] = None


class AppointmentPropertySummary(BaseModel):
    id: str
    title: str
    address: Optional[str] = None
    city: Optional[str] = None


class AppointmentResponse(BaseModel):
    id: str
    property_id: str
    user_id: str
    agent_id: str
    scheduled_at: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    property: Optional[AppointmentPropertySummary] = None
    client: Optional[AppointmentParty] = None
    agent: Optional[AppointmentParty] = None
    created_at: Optional[datetime] = None


class AppointmentListResponse(BaseModel):
    appointments: List[AppointmentResponse]
    total: int


class AvailableSlotsResponse(BaseModel):
    property_id: str
    date: date
    slots: List[datetime] = Field(..., description="Free slot start times (UTC)")
    hours: List[int] = Field(..., description="Free slot hours in the business timezone")


class DateRangeResponse(BaseModel):
    min_date: date
    max_date: date
    available_hours: List[int]


class AppointmentStatsResponse(BaseModel):
    total: int
    by_status: Dict[str, int]
