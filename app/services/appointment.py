"""
Appointment service: booking property visits and managing their lifecycle.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.appointment import Appointment, AppointmentStatus
from app.models.user import User, UserRole
from app.repositories.appointment import AppointmentRepository
from app.repositories.property import PropertyRepository
from app.schemas.appointment import AppointmentCreate, AppointmentFilters
from app.services.crm import CRMService
from app.utils.availability import (
    AVAILABLE_HOURS,
    can_cancel,
    can_confirm,
    ensure_utc,
    get_valid_date_range,
    is_workday,
    localize_input,
    slot_start_utc,
    validate_appointment_datetime,
)
from app.utils.exceptions import (
    APIException,
    AppointmentUnavailableError,
    BadRequestError,
    ForbiddenError,
    InsufficientPermissionsError,
    NotFoundError,
    ValidationError,
)
import uuid
import logging

logger = logging.getLogger(__name__)

NOTIFICATION_WARNING = "La cita se guardó, pero no se pudo enviar la notificación"


class AppointmentNotifier(ABC):
    """Delivers appointment notifications (email, push, ...)."""

    @abstractmethod
    async def appointment_created(self, appointment: Appointment) -> None:
        """Tell the agent a visit was requested."""

    @abstractmethod
    async def appointment_status_changed(self, appointment: Appointment) -> None:
        """Tell the client the visit was confirmed or cancelled."""


class LoggingNotifier(AppointmentNotifier):
    """Default notifier: writes the notification to the log."""

    async def appointment_created(self, appointment: Appointment) -> None:
        logger.info(
            f"Notify agent {appointment.agent_id}: visit requested for property "
            f"{appointment.property_id} at {ensure_utc(appointment.scheduled_at).isoformat()}"
        )

    async def appointment_status_changed(self, appointment: Appointment) -> None:
        logger.info(
            f"Notify client {appointment.user_id}: appointment {appointment.id} is {appointment.status.value}"
        )


class AppointmentService:
    """Visit booking for clients and visit management for agents."""

    def __init__(
        self,
        db_session: AsyncSession,
        notifier: Optional[AppointmentNotifier] = None,
        crm_service: Optional[CRMService] = None
    ):
        self.db = db_session
        self.appointment_repo = AppointmentRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.notifier = notifier or LoggingNotifier()
        self.crm_service = crm_service or CRMService(db_session)

    async def _notify(self, method: str, appointment: Appointment) -> Optional[str]:
        """Run a notifier hook; a failure becomes a warning message."""
        try:
            await getattr(self.notifier, method)(appointment)
            return None
        except Exception as e:
            logger.warning(f"Notification {method} failed for appointment {appointment.id}: {e}")
            return NOTIFICATION_WARNING

    async def create_appointment(self, appointment_data: AppointmentCreate, current_user: User) -> Dict[str, Any]:
        """
        Book a visit.

        Args:
            appointment_data: Property, requested start and notes
            current_user: Booking client

        Returns:
            {"appointment": Appointment, "warning": Optional[str]}

        Raises:
            ForbiddenError: If the user is not a client
            NotFoundError: If the property doesn't exist
            ValidationError: If the time breaks the scheduling rules
            AppointmentUnavailableError: If the slot is already taken
        """
        try:
            if current_user.role != UserRole.CLIENT:
                raise ForbiddenError("Only clients can book appointments")

            property_obj = await self.property_repo.get_by_id(appointment_data.property_id)
            if property_obj is None:
                raise NotFoundError("Property")

            valid, error = validate_appointment_datetime(appointment_data.scheduled_at)
            if not valid:
                raise ValidationError(error)

            scheduled_at = ensure_utc(localize_input(appointment_data.scheduled_at))

            if not await self.appointment_repo.is_slot_available(property_obj.id, scheduled_at):
                logger.warning(f"Slot {scheduled_at.isoformat()} taken for property {property_obj.id}")
                raise AppointmentUnavailableError()

            appointment = await self.appointment_repo.create_appointment({
                "user_id": current_user.id,
                "property_id": property_obj.id,
                "agent_id": property_obj.agent_id,
                "scheduled_at": scheduled_at,
                "notes": appointment_data.notes,
            })

            await self.crm_service.register_interaction(
                agent_id=property_obj.agent_id,
                client_id=current_user.id,
                source="appointment",
                property_id=property_obj.id
            )

            warning = await self._notify("appointment_created", appointment)
            logger.info(f"Appointment {appointment.id} booked by {current_user.email}")
            return {"appointment": appointment, "warning": warning}

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create appointment for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to create appointment: {str(e)}")

    async def _get_appointment(self, appointment_id: uuid.UUID) -> Appointment:
        appointment = await self.appointment_repo.get_appointment_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment")
        return appointment

    async def update_appointment_status(
        self,
        appointment_id: uuid.UUID,
        status: AppointmentStatus,
        current_user: User
    ) -> Dict[str, Any]:
        """
        Confirm or cancel a pending visit as its agent (or an admin).

        Raises:
            ForbiddenError: If the user is not the appointment's agent
            BadRequestError: If the appointment is no longer pending
        """
        try:
            appointment = await self._get_appointment(appointment_id)

            if appointment.agent_id != current_user.id and not current_user.is_admin:
                raise ForbiddenError("You are not authorized to manage this appointment")

            if not can_confirm(appointment.status):
                raise BadRequestError(f"Cannot confirm an appointment with status {appointment.status.value}")

            updated = await self.appointment_repo.update_appointment_status(appointment_id, status)
            warning = await self._notify("appointment_status_changed", updated)

            logger.info(f"Appointment {appointment_id} {status.value} by {current_user.email}")
            return {"appointment": updated, "warning": warning}

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update appointment {appointment_id}: {e}")
            raise BadRequestError(f"Failed to update appointment: {str(e)}")

    async def cancel_appointment_as_client(self, appointment_id: uuid.UUID, current_user: User) -> Dict[str, Any]:
        """
        Cancel a pending or confirmed visit as the client who booked it.

        Raises:
            ForbiddenError: If the user did not book the appointment
            BadRequestError: If the appointment can no longer be cancelled
        """
        try:
            appointment = await self._get_appointment(appointment_id)

            if appointment.user_id != current_user.id:
                raise ForbiddenError("You are not authorized to manage this appointment")

            if not can_cancel(appointment.status):
                raise BadRequestError(f"Cannot cancel an appointment with status {appointment.status.value}")

            updated = await self.appointment_repo.update_appointment_status(
                appointment_id, AppointmentStatus.CANCELLED
            )
            warning = await self._notify("appointment_status_changed", updated)

            logger.info(f"Appointment {appointment_id} cancelled by client {current_user.email}")
            return {"appointment": updated, "warning": warning}

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to cancel appointment {appointment_id}: {e}")
            raise BadRequestError(f"Failed to cancel appointment: {str(e)}")

    async def get_available_slots(self, property_id: uuid.UUID, day: date) -> Dict[str, Any]:
        """
        Free visit slots of a property on a business-local day.

        Returns:
            Dictionary with the free hours and their UTC start times
        """
        if not await self.property_repo.exists(property_id):
            raise NotFoundError("Property")

        min_date, max_date = get_valid_date_range()
        if min_date <= day <= max_date and is_workday(day):
            hours = await self.appointment_repo.get_available_slots(property_id, day)
        else:
            hours = []

        return {
            "property_id": str(property_id),
            "date": day,
            "hours": hours,
            "slots": [slot_start_utc(day, hour) for hour in hours],
        }

    @staticmethod
    def get_date_range() -> Dict[str, Any]:
        min_date, max_date = get_valid_date_range()
        return {"min_date": min_date, "max_date": max_date, "available_hours": list(AVAILABLE_HOURS)}

    async def get_agent_appointments(
        self,
        current_user: User,
        filters: Optional[AppointmentFilters] = None,
        skip: int = 0,
        take: int = 50
    ) -> Tuple[List[Appointment], int]:
        if current_user.role not in (UserRole.AGENT, UserRole.ADMIN):
            raise InsufficientPermissionsError("view agent appointments")

        filters = filters or AppointmentFilters()
        return await self.appointment_repo.get_agent_appointments(
            current_user.id,
            status=filters.status,
            start_date=filters.start_date,
            end_date=filters.end_date,
            skip=skip,
            take=take
        )

    async def get_user_appointments(self, current_user: User) -> List[Appointment]:
        return await self.appointment_repo.get_user_appointments(current_user.id)

    async def get_agent_stats(self, current_user: User) -> Dict[str, Any]:
        if current_user.role not in (UserRole.AGENT, UserRole.ADMIN):
            raise InsufficientPermissionsError("view agent appointments")
        return await self.appointment_repo.get_agent_appointment_stats(current_user.id)
