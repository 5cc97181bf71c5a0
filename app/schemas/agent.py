"""
Pydantic schemas for the public agent directory.
"""

from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from app.models.user import UserRole
from app.schemas.property import AgentSummary, PropertyResponse


class AgentCard(AgentSummary):
    """Directory entry with the agent's available listing count."""

    property_count: int = 0


class AgentDirectoryResponse(BaseModel):
    agents: List[AgentCard]
    total: int
    skip: int
    take: int


class AgentProfile(AgentSummary):
    role: UserRole
    member_since: Optional[datetime] = None


class AgentProfileResponse(BaseModel):
    agent: AgentProfile
    properties: List[PropertyResponse]
    total_properties: int
