"""
Pydantic schemas for the agent CRM (leads).
"""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.models.agent_client import LeadStatus


class ClientStatusUpdate(BaseModel):
    status: LeadStatus = Field(..., description="New lead status")


class ClientNotesUpdate(BaseModel):
    notes: str = Field(..., max_length=5000, description="Private agent notes")


class CRMClientCard(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    avatar: Optional[str] = None


class CRMClientResponse(BaseModel):
    id: str
    agent_id: str
    client_id: str
    property_id: Optional[str] = None
    status: LeadStatus
    notes: Optional[str] = None
    source: Optional[str] = None
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    client: Optional[CRMClientCard] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CRMClientListResponse(BaseModel):
    clients: List[CRMClientResponse]
    total: int
    skip: int
    take: int
