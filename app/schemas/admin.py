"""
Pydantic schemas for the admin panel.
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.models.property import PropertyStatus
from app.models.user import UserRole
from app.schemas.property import AgentSummary


class UserRoleUpdate(BaseModel):
    role: UserRole = Field(..., description="New role")


class UserStatusUpdate(BaseModel):
    is_active: bool = Field(..., description="Enable or disable the account")


class PropertyStatusUpdate(BaseModel):
    status: PropertyStatus = Field(..., description="New listing status")


class AdminPropertyRow(BaseModel):
    id: str
    title: str
    price: float
    transaction_type: str
    category: str
    status: PropertyStatus
    city: Optional[str] = None
    state: Optional[str] = None
    created_at: Optional[datetime] = None
    agent: Optional[AgentSummary] = None
    favorite_count: int = 0
    appointment_count: int = 0


class AdminPropertyListResponse(BaseModel):
    properties: List[AdminPropertyRow]
    total: int
    skip: int
    take: int


class GroupCount(BaseModel):
    key: str
    count: int


class AdminStats(BaseModel):
    total_users: int
    total_properties: int
    total_appointments: int
    total_favorites: int
    users_by_role: List[GroupCount]
    properties_by_status: List[GroupCount]
    appointments_by_status: List[GroupCount]
    recent_users: int = Field(..., description="Users created in the last 30 days")
    recent_properties: int = Field(..., description="Properties created in the last 30 days")


class DailyCount(BaseModel):
    date: str
    count: int


class AdminMetrics(BaseModel):
    users: List[DailyCount]
    properties: List[DailyCount]
    appointments: List[DailyCount]
