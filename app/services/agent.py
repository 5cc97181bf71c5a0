"""
Public agent directory and agent profiles.
"""

from typing import Any, Dict
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.property import PropertyStatus
from app.models.user import UserRole
from app.repositories.property import PropertyRepository
from app.repositories.user import UserRepository
from app.schemas.property import PropertyFilters
from app.utils.exceptions import NotFoundError
from app.utils.serialization import serialize_agent, serialize_properties
import uuid
import logging

logger = logging.getLogger(__name__)

AGENT_LISTINGS_LIMIT = 20
PROFILE_ROLES = (UserRole.AGENT, UserRole.ADMIN)


class AgentService:

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)

    async def list_agents(self, skip: int = 0, take: int = 20) -> Dict[str, Any]:
        """Active agents by name, each with the number of available listings."""
        agents = await self.user_repo.get_agents(skip=skip, take=take)
        total = await self.user_repo.count_agents()
        counts = await self.property_repo.count_available_by_agents([agent.id for agent in agents])

        return {
            "agents": [
                {**serialize_agent(agent), "property_count": counts.get(agent.id, 0)}
                for agent in agents
            ],
            "total": total,
            "skip": skip,
            "take": take,
        }

    async def get_agent_profile(self, agent_id: uuid.UUID) -> Dict[str, Any]:
        """
        Agent card with the agent's latest available listings.

        Raises:
            NotFoundError: If the user is not an active agent or admin
        """
        agent = await self.user_repo.get_by_id(agent_id)
        if agent is None or not agent.is_active or agent.role not in PROFILE_ROLES:
            raise NotFoundError("Agent")

        properties, total = await self.property_repo.list_properties(
            PropertyFilters(agent_id=agent.id, status=PropertyStatus.AVAILABLE),
            take=AGENT_LISTINGS_LIMIT
        )
        logger.debug(f"Agent profile {agent_id} with {total} available listings")

        return {
            "agent": {
                **serialize_agent(agent),
                "role": agent.role,
                "member_since": agent.created_at,
            },
            "properties": serialize_properties(properties),
            "total_properties": total,
        }
