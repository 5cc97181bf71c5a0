"""
Appointment repository: property visits and slot availability.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, asc, desc
from app.repositories.base import BaseRepository
from app.models.appointment import Appointment, AppointmentStatus
from app.utils.availability import (
    APPOINTMENT_DURATION_MINUTES,
    day_bounds_utc,
    ensure_utc,
    get_available_slots_for_day,
    local_hour,
)
from datetime import date, datetime, timedelta
from typing import Optional, List, Dict, Any, Iterable, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED)


class AppointmentRepository(BaseRepository[Appointment]):
    """Repository for visit appointments. `scheduled_at` values are UTC."""

    def __init__(self, db: AsyncSession):
        super().__init__(Appointment, db)

    async def create_appointment(self, appointment_data: Dict[str, Any]) -> Appointment:
        """
        Create a new appointment in PENDING status.

        Args:
            appointment_data: user_id, property_id, agent_id, scheduled_at, notes

        Returns:
            Created appointment with its parties and property loaded
        """
        data = {**appointment_data, "status": AppointmentStatus.PENDING}
        data["scheduled_at"] = ensure_utc(data["scheduled_at"])

        appointment = await self.create(data)
        logger.info(f"Created appointment {appointment.id} for property {appointment.property_id}")
        return appointment

    async def get_appointment_by_id(self, appointment_id: uuid.UUID) -> Optional[Appointment]:
        return await self.get_by_id(appointment_id)

    async def update_appointment_status(
        self,
        appointment_id: uuid.UUID,
        status: AppointmentStatus
    ) -> Optional[Appointment]:
        appointment = await self.update(appointment_id, {"status": status})
        if appointment:
            logger.info(f"Appointment {appointment_id} set to {status.value}")
        return appointment

    async def get_agent_appointments(
        self,
        agent_id: uuid.UUID,
        status: Optional[AppointmentStatus] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        skip: int = 0,
        take: int = 50
    ) -> Tuple[List[Appointment], int]:
        """
        Appointments of an agent's listings, earliest first.

        Args:
            agent_id: Listing agent
            status: Optional status filter
            start_date: Inclusive lower bound on scheduled_at
            end_date: Inclusive upper bound on scheduled_at
            skip: Number of records to skip
            take: Maximum number of records to return

        Returns:
            Tuple of (appointments list, total count)
        """
        conditions = [Appointment.agent_id == agent_id]
        if status is not None:
            conditions.append(Appointment.status == status)
        if start_date is not None:
            conditions.append(Appointment.scheduled_at >= ensure_utc(start_date))
        if end_date is not None:
            conditions.append(Appointment.scheduled_at <= ensure_utc(end_date))

        try:
            count_result = await self.db.execute(
                select(func.count(Appointment.id)).where(and_(*conditions))
            )
            total_count = count_result.scalar() or 0

            query = (
                select(Appointment)
                .where(and_(*conditions))
                .order_by(asc(Appointment.scheduled_at))
                .offset(skip)
                .limit(take)
            )
            result = await self.db.execute(query)
            appointments = list(result.scalars().all())

            logger.debug(f"Retrieved {len(appointments)} appointments for agent {agent_id}")
            return appointments, total_count
        except Exception as e:
            logger.error(f"Failed to get appointments for agent {agent_id}: {e}")
            raise

    async def get_user_appointments(self, user_id: uuid.UUID) -> List[Appointment]:
        """Appointments booked by a client, latest first."""
        query = (
            select(Appointment)
            .where(Appointment.user_id == user_id)
            .order_by(desc(Appointment.scheduled_at))
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_property_appointments(
        self,
        property_id: uuid.UUID,
        statuses: Optional[Iterable[AppointmentStatus]] = None
    ) -> List[Appointment]:
        query = select(Appointment).where(Appointment.property_id == property_id)
        if statuses:
            query = query.where(Appointment.status.in_(list(statuses)))
        result = await self.db.execute(query.order_by(asc(Appointment.scheduled_at)))
        return list(result.scalars().all())

    async def get_appointments_in_time_range(
        self,
        property_id: uuid.UUID,
        start: datetime,
        end: datetime
    ) -> List[Appointment]:
        """Pending or confirmed appointments of a property starting in [start, end)."""
        query = (
            select(Appointment)
            .where(
                and_(
                    Appointment.property_id == property_id,
                    Appointment.status.in_(ACTIVE_STATUSES),
                    Appointment.scheduled_at >= ensure_utc(start),
                    Appointment.scheduled_at < ensure_utc(end)
                )
            )
            .order_by(asc(Appointment.scheduled_at))
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def is_slot_available(self, property_id: uuid.UUID, slot: datetime) -> bool:
        """True when no active appointment of the property starts inside the slot."""
        start = ensure_utc(slot)
        end = start + timedelta(minutes=APPOINTMENT_DURATION_MINUTES)
        return not await self.get_appointments_in_time_range(property_id, start, end)

    async def get_available_slots(self, property_id: uuid.UUID, day: date) -> List[int]:
        """Business-local hours still free on a given day."""
        start, end = day_bounds_utc(day)
        booked = await self.get_appointments_in_time_range(property_id, start, end)
        return get_available_slots_for_day(local_hour(a.scheduled_at) for a in booked)

    async def delete_appointment(self, appointment_id: uuid.UUID) -> bool:
        return await self.delete(appointment_id)

    async def get_agent_appointment_stats(self, agent_id: uuid.UUID) -> Dict[str, Any]:
        """Appointment counts of an agent, zero-filled for every status."""
        query = (
            select(Appointment.status, func.count(Appointment.id))
            .where(Appointment.agent_id == agent_id)
            .group_by(Appointment.status)
        )
        result = await self.db.execute(query)

        by_status = {status.value: 0 for status in AppointmentStatus}
        for status, count in result.all():
            by_status[status.value] = count

        return {"total": sum(by_status.values()), "by_status": by_status}
