"""
CRM API endpoints: the current agent's leads.
"""

import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, status

from app.models.agent_client import LeadStatus
from app.models.user import User
from app.services.crm import CRMService
from app.services.error_handler import ErrorHandlerService
from app.schemas.crm import ClientNotesUpdate, ClientStatusUpdate, CRMClientListResponse
from app.schemas.error import get_action_responses, get_auth_error_responses
from app.utils.dependencies import get_crm_service, get_current_active_user, get_current_agent_user
from app.utils.exceptions import APIException

router = APIRouter(prefix="/crm", tags=["CRM"])


@router.get(
    "/clients",
    response_model=CRMClientListResponse,
    status_code=status.HTTP_200_OK,
    summary="Leads of the current agent",
    description="Clients who saved or booked one of the agent's listings, most recently active first.",
    responses=get_auth_error_responses()
)
async def list_clients(
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    take: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_agent_user),
    crm_service: CRMService = Depends(get_crm_service)
) -> CRMClientListResponse:
    clients, total = await crm_service.list_clients(current_user, status=status_filter, skip=skip, take=take)
    return CRMClientListResponse(clients=clients, total=total, skip=skip, take=take)


@router.patch(
    "/clients/{client_id}/status",
    summary="Move a lead through the pipeline",
    responses=get_action_responses(200, 400, 401, 403, 404, 422)
)
async def update_client_status(
    status_data: ClientStatusUpdate,
    client_id: uuid.UUID = Path(..., description="Lead unique identifier"),
    current_user: User = Depends(get_current_active_user),
    crm_service: CRMService = Depends(get_crm_service)
):
    try:
        client = await crm_service.update_client_status(client_id, status_data.status, current_user)
        return ErrorHandlerService.action_success(client=client)
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "update_client_status")


@router.patch(
    "/clients/{client_id}/notes",
    summary="Update private notes on a lead",
    responses=get_action_responses(200, 400, 401, 403, 404, 422)
)
async def update_client_notes(
    notes_data: ClientNotesUpdate,
    client_id: uuid.UUID = Path(..., description="Lead unique identifier"),
    current_user: User = Depends(get_current_active_user),
    crm_service: CRMService = Depends(get_crm_service)
):
    try:
        client = await crm_service.update_client_notes(client_id, notes_data.notes, current_user)
        return ErrorHandlerService.action_success(client=client)
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "update_client_notes")


@router.delete(
    "/clients/{client_id}",
    summary="Remove a lead",
    responses=get_action_responses(200, 400, 401, 403, 404)
)
async def delete_client(
    client_id: uuid.UUID = Path(..., description="Lead unique identifier"),
    current_user: User = Depends(get_current_active_user),
    crm_service: CRMService = Depends(get_crm_service)
):
    try:
        await crm_service.delete_client(client_id, current_user)
        return ErrorHandlerService.action_success()
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "delete_client")
