"""Smile session repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.persistence.models.session import SmileSession


class SessionRepository:
    """Repository for saved smile sessions.

    Sessions use string UUID keys, so this does not extend BaseRepository.
    """

    def __init__(self, session: AsyncSession):
        """Initialize session repository."""
        self.session = session

    async def create(self, **data) -> SmileSession:
        """Persist a smile session."""
        instance = SmileSession(**data)
        self.session.add(instance)
        await self.session.commit()
        await self.session.refresh(instance)
        return instance

    async def get_by_id(self, session_id: str) -> SmileSession | None:
        """Get a smile session by its UUID."""
        result = await self.session.execute(
            select(SmileSession).where(SmileSession.id == session_id)
        )
        return result.scalar_one_or_none()

    async def get_latest_for_lead(self, lead_id: int) -> SmileSession | None:
        """Get the most recent session saved for a lead."""
        stmt = (
            select(SmileSession)
            .where(SmileSession.lead_id == lead_id)
            .order_by(SmileSession.created_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
