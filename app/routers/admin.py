"""
Admin panel API endpoints: users, listings and platform metrics.
Every route requires an administrator.
"""

import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, status

from app.models.property import PropertyStatus
from app.models.user import User, UserRole
from app.services.admin import AdminService
from app.services.error_handler import ErrorHandlerService
from app.schemas.admin import (
    AdminMetrics,
    AdminPropertyListResponse,
    AdminStats,
    PropertyStatusUpdate,
    UserRoleUpdate,
    UserStatusUpdate
)
from app.schemas.user import UserListResponse, UserWithCounts
from app.schemas.error import get_action_responses, get_error_responses
from app.utils.dependencies import get_admin_service, get_current_admin_user
from app.utils.exceptions import APIException
from app.utils.serialization import serialize_property

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get(
    "/users",
    response_model=UserListResponse,
    status_code=status.HTTP_200_OK,
    summary="List users",
    description="Users with their listing, favorite and appointment counts, newest first.",
    responses=get_error_responses(401, 403)
)
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    search: Optional[str] = Query(None, description="Match on name or email"),
    skip: int = Query(0, ge=0),
    take: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> UserListResponse:
    users, total = await admin_service.list_users(current_user, role=role, search=search, skip=skip, take=take)
    return UserListResponse(users=users, total=total, skip=skip, take=take)


@router.get(
    "/users/{user_id}",
    response_model=UserWithCounts,
    summary="Get a user",
    responses=get_error_responses(401, 403, 404)
)
async def get_user(
    user_id: uuid.UUID = Path(..., description="User unique identifier"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> UserWithCounts:
    return await admin_service.get_user(user_id, current_user)


@router.patch(
    "/users/{user_id}/role",
    summary="Change a user's role",
    responses=get_action_responses(200, 400, 401, 403, 404, 422)
)
async def update_user_role(
    role_data: UserRoleUpdate,
    user_id: uuid.UUID = Path(..., description="User unique identifier"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        user = await admin_service.update_user_role(user_id, role_data.role, current_user)
        return ErrorHandlerService.action_success(user=user)
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "update_user_role")


@router.patch(
    "/users/{user_id}/status",
    summary="Enable or disable an account",
    responses=get_action_responses(200, 400, 401, 403, 404, 422)
)
async def update_user_status(
    status_data: UserStatusUpdate,
    user_id: uuid.UUID = Path(..., description="User unique identifier"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        user = await admin_service.update_user_status(user_id, status_data.is_active, current_user)
        return ErrorHandlerService.action_success(user=user)
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "update_user_status")


@router.delete(
    "/users/{user_id}",
    summary="Delete a user",
    description="Deletes the account with its listings, favorites and appointments.",
    responses=get_action_responses(200, 400, 401, 403, 404, 422)
)
async def delete_user(
    user_id: uuid.UUID = Path(..., description="User unique identifier"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        await admin_service.delete_user(user_id, current_user)
        return ErrorHandlerService.action_success()
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "delete_user")


@router.get(
    "/properties",
    response_model=AdminPropertyListResponse,
    summary="List every listing",
    responses=get_error_responses(401, 403)
)
async def list_properties(
    status_filter: Optional[PropertyStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Match on title, address or city"),
    agent_id: Optional[uuid.UUID] = Query(None, description="Filter by owner"),
    skip: int = Query(0, ge=0),
    take: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminPropertyListResponse:
    properties, total = await admin_service.list_properties(
        current_user, status=status_filter, search=search, agent_id=agent_id, skip=skip, take=take
    )
    return AdminPropertyListResponse(properties=properties, total=total, skip=skip, take=take)


@router.patch(
    "/properties/{property_id}/status",
    summary="Change a listing's status",
    responses=get_action_responses(200, 400, 401, 403, 404, 422)
)
async def update_property_status(
    status_data: PropertyStatusUpdate,
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        property_obj = await admin_service.update_property_status(property_id, status_data.status, current_user)
        return ErrorHandlerService.action_success(property=serialize_property(property_obj, include_agent=True))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "update_property_status")


@router.delete(
    "/properties/{property_id}",
    summary="Delete any listing",
    responses=get_action_responses(200, 400, 401, 403, 404)
)
async def delete_property(
    property_id: uuid.UUID = Path(..., description="Property unique identifier"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
):
    try:
        await admin_service.delete_property(property_id, current_user)
        return ErrorHandlerService.action_success()
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "admin_delete_property")


@router.get(
    "/stats",
    response_model=AdminStats,
    summary="Platform totals",
    responses=get_error_responses(401, 403)
)
async def get_stats(
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminStats:
    return await admin_service.get_stats(current_user)


@router.get(
    "/metrics",
    response_model=AdminMetrics,
    summary="Daily creation counts",
    responses=get_error_responses(401, 403, 422)
)
async def get_metrics(
    days: int = Query(30, ge=1, le=365, description="Days to report"),
    current_user: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminMetrics:
    return await admin_service.get_metrics_by_period(current_user, days=days)
