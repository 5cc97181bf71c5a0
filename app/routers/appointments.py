"""
Appointment API endpoints: visit booking, agent agenda and slot availability.
"""

import uuid
from datetime import date, datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query, status

from app.models.appointment import AppointmentStatus
from app.models.user import User
from app.services.appointment import AppointmentService
from app.services.error_handler import ErrorHandlerService
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentFilters,
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatsResponse,
    AppointmentStatusUpdate,
    AvailableSlotsResponse,
    DateRangeResponse
)
from app.schemas.error import get_action_responses, get_auth_error_responses, get_error_responses
from app.utils.dependencies import get_appointment_service, get_current_active_user, get_current_agent_user
from app.utils.exceptions import APIException
from app.utils.rate_limit import rate_limit
from app.utils.serialization import serialize_appointment

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def _action_payload(result: dict) -> dict:
    payload = {"appointment": serialize_appointment(result["appointment"])}
    if result.get("warning"):
        payload["warning"] = result["warning"]
    return payload


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Book a visit",
    description="Clients book one-hour visits on weekdays, from tomorrow on, at the available hours.",
    responses=get_action_responses(201, 400, 401, 403, 404, 422, 429),
    dependencies=[Depends(rate_limit("appointment"))]
)
async def create_appointment(
    appointment_data: AppointmentCreate,
    current_user: User = Depends(get_current_active_user),
    appointment_service: AppointmentService = Depends(get_appointment_service)
):
    try:
        result = await appointment_service.create_appointment(appointment_data, current_user)
        return ErrorHandlerService.action_success(**_action_payload(result))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "create_appointment")


@router.get(
    "/me",
    response_model=List[AppointmentResponse],
    summary="Appointments booked by the current user",
    responses=get_auth_error_responses()
)
async def get_my_appointments(
    current_user: User = Depends(get_current_active_user),
    appointment_service: AppointmentService = Depends(get_appointment_service)
) -> List[AppointmentResponse]:
    appointments = await appointment_service.get_user_appointments(current_user)
    return [serialize_appointment(appointment) for appointment in appointments]


@router.get(
    "/agent",
    response_model=AppointmentListResponse,
    summary="Agent agenda",
    description="Visits of the current agent's listings, soonest first.",
    responses=get_auth_error_responses()
)
async def get_agent_appointments(
    status_filter: Optional[AppointmentStatus] = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None, description="Only visits at or after this time"),
    end_date: Optional[datetime] = Query(None, description="Only visits at or before this time"),
    skip: int = Query(0, ge=0),
    take: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_agent_user),
    appointment_service: AppointmentService = Depends(get_appointment_service)
) -> AppointmentListResponse:
    filters = AppointmentFilters(status=status_filter, start_date=start_date, end_date=end_date)
    appointments, total = await appointment_service.get_agent_appointments(
        current_user, filters, skip=skip, take=take
    )
    return AppointmentListResponse(
        appointments=[serialize_appointment(appointment) for appointment in appointments],
        total=total
    )


@router.get(
    "/agent/stats",
    response_model=AppointmentStatsResponse,
    summary="Agent appointment counts by status",
    responses=get_auth_error_responses()
)
async def get_agent_stats(
    current_user: User = Depends(get_current_agent_user),
    appointment_service: AppointmentService = Depends(get_appointment_service)
) -> AppointmentStatsResponse:
    return await appointment_service.get_agent_stats(current_user)


@router.get(
    "/slots",
    response_model=AvailableSlotsResponse,
    summary="Free visit slots of a property",
    description="Free hours on a business-local day. Days outside the booking window are empty.",
    responses=get_error_responses(404, 422)
)
async def get_available_slots(
    property_id: uuid.UUID = Query(..., description="Property unique identifier"),
    day: date = Query(..., alias="date", description="Day in the business timezone (YYYY-MM-DD)"),
    appointment_service: AppointmentService = Depends(get_appointment_service)
) -> AvailableSlotsResponse:
    return await appointment_service.get_available_slots(property_id, day)


@router.get(
    "/date-range",
    response_model=DateRangeResponse,
    summary="Bookable date window"
)
async def get_date_range() -> DateRangeResponse:
    return AppointmentService.get_date_range()


@router.patch(
    "/{appointment_id}/status",
    summary="Confirm or cancel a pending visit",
    description="Only the listing agent (or an admin) decides on pending visits.",
    responses=get_action_responses(200, 400, 401, 403, 404, 422)
)
async def update_appointment_status(
    status_data: AppointmentStatusUpdate,
    appointment_id: uuid.UUID = Path(..., description="Appointment unique identifier"),
    current_user: User = Depends(get_current_active_user),
    appointment_service: AppointmentService = Depends(get_appointment_service)
):
    try:
        result = await appointment_service.update_appointment_status(
            appointment_id, status_data.status, current_user
        )
        return ErrorHandlerService.action_success(**_action_payload(result))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "update_appointment_status")


@router.post(
    "/{appointment_id}/cancel",
    summary="Cancel a booked visit",
    description="The client who booked the visit can cancel it while pending or confirmed.",
    responses=get_action_responses(200, 400, 401, 403, 404)
)
async def cancel_appointment(
    appointment_id: uuid.UUID = Path(..., description="Appointment unique identifier"),
    current_user: User = Depends(get_current_active_user),
    appointment_service: AppointmentService = Depends(get_appointment_service)
):
    try:
        result = await appointment_service.cancel_appointment_as_client(appointment_id, current_user)
        return ErrorHandlerService.action_success(**_action_payload(result))
    except APIException as e:
        return ErrorHandlerService.action_error_response(e, "cancel_appointment")
