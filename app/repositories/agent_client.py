"""
AgentClient repository: the agents' CRM leads.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_, desc
from sqlalchemy.exc import IntegrityError
from app.repositories.base import BaseRepository
from app.models.agent_client import AgentClient, LeadStatus
from typing import Optional, List, Dict, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)

UTM_FIELDS = ("utm_source", "utm_medium", "utm_campaign")


class AgentClientRepository(BaseRepository[AgentClient]):
    """Repository for CRM leads. One record per (agent, client)."""

    def __init__(self, db: AsyncSession):
        super().__init__(AgentClient, db)

    async def find_by_pair(self, agent_id: uuid.UUID, client_id: uuid.UUID) -> Optional[AgentClient]:
        query = select(AgentClient).where(
            and_(AgentClient.agent_id == agent_id, AgentClient.client_id == client_id)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        agent_id: uuid.UUID,
        client_id: uuid.UUID,
        source: Optional[str] = None,
        property_id: Optional[uuid.UUID] = None,
        utm: Optional[Dict[str, Optional[str]]] = None
    ) -> AgentClient:
        """
        Return the lead for (agent, client), creating it on first interaction.

        An existing lead without UTM data gets the UTM fields of this interaction.

        Args:
            agent_id: Listing agent
            client_id: Interacting client
            source: Interaction type (favorite, appointment, ...)
            property_id: Listing that triggered the interaction
            utm: Optional utm_source / utm_medium / utm_campaign values

        Returns:
            The existing or newly created lead
        """
        utm_values = {field: (utm or {}).get(field) for field in UTM_FIELDS}

        existing = await self.find_by_pair(agent_id, client_id)
        if existing:
            backfill = {
                field: value
                for field, value in utm_values.items()
                if value and not getattr(existing, field)
            }
            if backfill:
                existing = await self.update(existing.id, backfill)
                logger.debug(f"Backfilled UTM data on lead {existing.id}")
            return existing

        try:
            lead = await self.create({
                "agent_id": agent_id,
                "client_id": client_id,
                "property_id": property_id,
                "source": source,
                "status": LeadStatus.NEW,
                **utm_values,
            })
        except IntegrityError:
            # Created concurrently by another request
            lead = await self.find_by_pair(agent_id, client_id)
            if lead is None:
                raise

        logger.info(f"Registered lead for agent {agent_id} (source: {source})")
        return lead

    async def find_for_agent(self, lead_id: uuid.UUID, agent_id: uuid.UUID) -> Optional[AgentClient]:
        query = select(AgentClient).where(
            and_(AgentClient.id == lead_id, AgentClient.agent_id == agent_id)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_for_agent(
        self,
        agent_id: uuid.UUID,
        status: Optional[LeadStatus] = None,
        skip: int = 0,
        take: int = 50
    ) -> Tuple[List[AgentClient], int]:
        """
        Leads of an agent, most recently updated first.

        Returns:
            Tuple of (leads list, total count)
        """
        conditions = [AgentClient.agent_id == agent_id]
        if status is not None:
            conditions.append(AgentClient.status == status)

        count_result = await self.db.execute(
            select(func.count(AgentClient.id)).where(and_(*conditions))
        )
        total_count = count_result.scalar() or 0

        query = (
            select(AgentClient)
            .where(and_(*conditions))
            .order_by(desc(AgentClient.updated_at))
            .offset(skip)
            .limit(take)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total_count

    async def update_status(self, lead_id: uuid.UUID, status: LeadStatus) -> Optional[AgentClient]:
        return await self.update(lead_id, {"status": status})

    async def update_notes(self, lead_id: uuid.UUID, notes: Optional[str]) -> Optional[AgentClient]:
        """Replace the agent notes. An empty value clears them."""
        try:
            lead = await self.get_by_id(lead_id)
            if lead is None:
                return None
            lead.notes = notes or None
            await self.db.commit()
            return await self.reload(lead_id)
        except Exception:
            await self.db.rollback()
            raise
