"""Lead capture and management."""

import logging
import uuid
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.persistence.models.lead import Lead, LeadStatus
from smileforward.persistence.repositories.generation_repository import GenerationRepository
from smileforward.persistence.repositories.lead_repository import LeadRepository
from smileforward.persistence.repositories.session_repository import SessionRepository

logger = logging.getLogger(__name__)


class LeadNotFoundError(Exception):
    """Raised when a lead does not exist."""
    pass


class LeadService:
    """Service for capturing leads and linking their generated media."""

    def __init__(self, session: AsyncSession):
        """Initialize lead service."""
        self.session = session
        self.lead_repo = LeadRepository(session)
        self.generation_repo = GenerationRepository(session)
        self.session_repo = SessionRepository(session)

    async def create_lead(
        self,
        name: str,
        email: str,
        phone: str,
        generation_id: int | None = None,
        session_id: str | None = None,
        original_image_url: str | None = None,
        analysis: dict[str, Any] | None = None,
        results: list[dict[str, Any]] | None = None,
    ) -> Lead:
        """Persist a lead from the gated form and link its smile image.

        Args:
            name: Contact name
            email: Contact email
            phone: Contact phone
            generation_id: Image generation produced in this widget session
            session_id: Widget session UUID for the history snapshot
            original_image_url: Uploads-bucket path of the raw selfie
            analysis: Restoration plan shown to the user
            results: Generated images of the session

        Returns:
            The created lead, or the lead already captured for this widget
            session or generation when the form is resubmitted
        """
        contact = {
            "name": name.strip(),
            "email": email.strip().lower(),
            "phone": phone.strip(),
        }
        lead_id = await self._captured_lead_id(session_id, generation_id)
        if lead_id is not None:
            await self.lead_repo.update(lead_id, **contact)
            logger.info(f"Lead resubmitted: lead_id={lead_id}")
        else:
            lead = await self.lead_repo.create(status=LeadStatus.PENDING.value, **contact)
            lead_id = lead.id
            logger.info(f"Lead captured: lead_id={lead_id}")

        if generation_id is not None:
            await self.link_generation(lead_id, generation_id)

        snapshot_saved = session_id is not None and await self.session_repo.get_by_id(session_id) is not None
        if (analysis is not None or results) and not snapshot_saved:
            await self.save_session(
                lead_id=lead_id,
                session_id=session_id,
                original_image_url=original_image_url,
                analysis=analysis,
                results=results or [],
            )

        # A failed snapshot rolls back and expires the lead
        return await self.lead_repo.get_with_generations(lead_id)

    async def _captured_lead_id(self, session_id: str | None, generation_id: int | None) -> int | None:
        """Find the lead a previous submission of the same widget session created."""
        if session_id is not None:
            snapshot = await self.session_repo.get_by_id(session_id)
            if snapshot is not None and snapshot.lead_id is not None:
                return snapshot.lead_id
        if generation_id is not None:
            generation = await self.generation_repo.get_by_id(generation_id)
            if generation is not None and generation.lead_id is not None:
                return generation.lead_id
        return None

    async def link_generation(self, lead_id: int, generation_id: int) -> bool:
        """Attach an unowned generation to a lead.

        Returns:
            True if linked, False if the generation is missing or owned
        """
        generation = await self.generation_repo.get_by_id(generation_id)
        if generation is None:
            logger.warning(f"Generation {generation_id} not found while linking lead {lead_id}")
            return False
        if generation.lead_id is not None and generation.lead_id != lead_id:
            logger.warning(
                f"Generation {generation_id} already belongs to lead {generation.lead_id}"
            )
            return False
        await self.generation_repo.update(generation_id, lead_id=lead_id)
        return True

    async def save_session(
        self,
        lead_id: int,
        session_id: str | None,
        original_image_url: str | None,
        analysis: dict[str, Any] | None,
        results: list[dict[str, Any]],
    ) -> None:
        """Save the widget session history; failures never break the flow."""
        try:
            await self.session_repo.create(
                id=session_id or str(uuid.uuid4()),
                lead_id=lead_id,
                original_image_url=original_image_url,
                analysis_data=analysis,
                results=results,
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to save session for lead {lead_id}: {e}")
            await self.session.rollback()

    async def update_survey(self, lead_id: int, survey: dict[str, Any]) -> Lead:
        """Merge survey preferences into the lead's survey data.

        Raises:
            LeadNotFoundError: If the lead does not exist
        """
        lead = await self.lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError("Lead not found")
        merged = {**(lead.survey_data or {}), **survey}
        return await self.lead_repo.update(lead_id, survey_data=merged)

    async def update_status(self, lead_id: int, status: str) -> Lead:
        """Change a lead's pipeline status.

        Raises:
            ValueError: If the status is not a known lead status
            LeadNotFoundError: If the lead does not exist
        """
        new_status = LeadStatus(status)
        lead = await self.lead_repo.update(lead_id, status=new_status.value)
        if lead is None:
            raise LeadNotFoundError("Lead not found")
        return lead

    async def get_lead(self, lead_id: int) -> Lead | None:
        """Get a lead with its generations."""
        return await self.lead_repo.get_with_generations(lead_id)

    async def list_leads(
        self,
        skip: int = 0,
        limit: int = 100,
        status: str | None = None,
    ) -> list[Lead]:
        """List leads newest first."""
        return await self.lead_repo.list_recent(skip=skip, limit=limit, status=status)

    async def count_leads(self, status: str | None = None) -> int:
        """Count leads, optionally by status."""
        return await self.lead_repo.count(status=status)
