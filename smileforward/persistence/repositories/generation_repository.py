"""Generation repository."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.persistence.models.generation import (
    Generation,
    GenerationStatus,
    GenerationType,
)
from smileforward.persistence.repositories.base import BaseRepository


class GenerationRepository(BaseRepository[Generation]):
    """Repository for Generation entities."""

    def __init__(self, session: AsyncSession):
        """Initialize generation repository."""
        super().__init__(Generation, session)

    async def get_latest_completed_image(self, lead_id: int) -> Generation | None:
        """Get the most recent completed image generation for a lead.

        Video generation is always derived from this record.
        """
        stmt = (
            select(Generation)
            .where(
                Generation.lead_id == lead_id,
                Generation.type == GenerationType.IMAGE.value,
                Generation.status == GenerationStatus.COMPLETED.value,
            )
            .order_by(Generation.created_at.desc(), Generation.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_lead(self, lead_id: int) -> list[Generation]:
        """List all generations for a lead, oldest first."""
        stmt = (
            select(Generation)
            .where(Generation.lead_id == lead_id)
            .order_by(Generation.created_at.asc(), Generation.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_type(self) -> dict[str, int]:
        """Count generations grouped by type."""
        stmt = select(Generation.type, func.count(Generation.id)).group_by(Generation.type)
        result = await self.session.execute(stmt)
        return {gen_type: count for gen_type, count in result.all()}

    async def list_created_since(self, since: datetime) -> list[Generation]:
        """List generations created after a point in time."""
        stmt = (
            select(Generation)
            .where(Generation.created_at >= since)
            .order_by(Generation.created_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
