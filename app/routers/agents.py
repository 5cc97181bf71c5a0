"""
Public agent directory endpoints.
"""

import uuid
from fastapi import APIRouter, Depends, Path, Query

from app.services.agent import AgentService
from app.schemas.agent import AgentDirectoryResponse, AgentProfileResponse
from app.schemas.error import get_error_responses
from app.utils.dependencies import get_agent_service

router = APIRouter(prefix="/agents", tags=["Agents"])


@router.get(
    "",
    response_model=AgentDirectoryResponse,
    summary="Active agents with their available listing counts"
)
async def list_agents(
    skip: int = Query(0, ge=0),
    take: int = Query(20, ge=1, le=100),
    agent_service: AgentService = Depends(get_agent_service)
) -> AgentDirectoryResponse:
    return AgentDirectoryResponse(**await agent_service.list_agents(skip=skip, take=take))


@router.get(
    "/{agent_id}",
    response_model=AgentProfileResponse,
    summary="Agent profile with available listings",
    responses=get_error_responses(404)
)
async def get_agent_profile(
    agent_id: uuid.UUID = Path(..., description="Agent unique identifier"),
    agent_service: AgentService = Depends(get_agent_service)
) -> AgentProfileResponse:
    return AgentProfileResponse(**await agent_service.get_agent_profile(agent_id))
