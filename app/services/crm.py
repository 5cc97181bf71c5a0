"""
CRM service: leads captured from client interactions with an agent's listings.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.agent_client import AgentClient, LeadStatus
from app.models.user import User, UserRole
from app.repositories.agent_client import AgentClientRepository
from app.utils.exceptions import (
    APIException,
    BadRequestError,
    InsufficientPermissionsError,
    NotFoundError,
)
import uuid
import logging

logger = logging.getLogger(__name__)


class CRMService:
    """Lead management scoped to the current agent."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.lead_repo = AgentClientRepository(db_session)

    async def register_interaction(
        self,
        agent_id: uuid.UUID,
        client_id: uuid.UUID,
        source: str,
        property_id: Optional[uuid.UUID] = None,
        utm: Optional[Dict[str, Optional[str]]] = None
    ) -> Optional[AgentClient]:
        """
        Record that a client interacted with one of the agent's listings.

        Failures are logged and never propagate to the calling action.

        Returns:
            The lead, or None when nothing was recorded
        """
        if agent_id == client_id:
            return None

        try:
            return await self.lead_repo.get_or_create(
                agent_id=agent_id,
                client_id=client_id,
                source=source,
                property_id=property_id,
                utm=utm
            )
        except Exception as e:
            logger.error(f"Failed to register {source} interaction for agent {agent_id}: {e}")
            return None

    @staticmethod
    def _require_agent(current_user: User) -> None:
        if current_user.role not in (UserRole.AGENT, UserRole.ADMIN):
            raise InsufficientPermissionsError("manage clients")

    async def _get_lead(self, lead_id: uuid.UUID, current_user: User) -> AgentClient:
        self._require_agent(current_user)
        lead = await self.lead_repo.find_for_agent(lead_id, current_user.id)
        if lead is None:
            raise NotFoundError("Client", detail="Cliente no encontrado")
        return lead

    async def list_clients(
        self,
        current_user: User,
        status: Optional[LeadStatus] = None,
        skip: int = 0,
        take: int = 50
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Leads of the current agent.

        Returns:
            Tuple of (lead dictionaries, total count)
        """
        self._require_agent(current_user)
        leads, total = await self.lead_repo.list_for_agent(current_user.id, status=status, skip=skip, take=take)
        return [lead.to_dict() for lead in leads], total

    async def update_client_status(
        self,
        lead_id: uuid.UUID,
        status: LeadStatus,
        current_user: User
    ) -> Dict[str, Any]:
        try:
            await self._get_lead(lead_id, current_user)
            lead = await self.lead_repo.update_status(lead_id, status)
            logger.info(f"Lead {lead_id} moved to {status.value} by agent {current_user.id}")
            return lead.to_dict()
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update lead status {lead_id}: {e}")
            raise BadRequestError(f"Failed to update client status: {str(e)}")

    async def update_client_notes(
        self,
        lead_id: uuid.UUID,
        notes: str,
        current_user: User
    ) -> Dict[str, Any]:
        try:
            await self._get_lead(lead_id, current_user)
            lead = await self.lead_repo.update_notes(lead_id, notes.strip())
            logger.info(f"Lead {lead_id} notes updated by agent {current_user.id}")
            return lead.to_dict()
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to update lead notes {lead_id}: {e}")
            raise BadRequestError(f"Failed to update client notes: {str(e)}")

    async def delete_client(self, lead_id: uuid.UUID, current_user: User) -> bool:
        try:
            await self._get_lead(lead_id, current_user)
            deleted = await self.lead_repo.delete(lead_id)
            logger.info(f"Lead {lead_id} deleted by agent {current_user.id}")
            return deleted
        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to delete lead {lead_id}: {e}")
            raise BadRequestError(f"Failed to delete client: {str(e)}")
