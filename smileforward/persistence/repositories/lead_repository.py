"""Lead repository."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from smileforward.persistence.models.lead import Lead
from smileforward.persistence.repositories.base import BaseRepository


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead entities."""

    def __init__(self, session: AsyncSession):
        """Initialize lead repository."""
        super().__init__(Lead, session)

    async def get_with_generations(self, lead_id: int) -> Lead | None:
        """Get a lead with its generations loaded."""
        stmt = (
            select(Lead)
            .options(selectinload(Lead.generations))
            .where(Lead.id == lead_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_recent(
        self,
        skip: int = 0,
        limit: int = 100,
        status: str | None = None,
    ) -> list[Lead]:
        """List leads newest first, optionally filtered by status.

        Args:
            skip: Pagination offset
            limit: Maximum records to return
            status: Optional lead status filter

        Returns:
            Leads with their generations loaded
        """
        stmt = select(Lead).options(selectinload(Lead.generations))
        if status:
            stmt = stmt.where(Lead.status == status)
        stmt = stmt.order_by(Lead.created_at.desc(), Lead.id.desc()).offset(skip).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, status: str | None = None) -> int:
        """Count leads, optionally by status."""
        stmt = select(func.count(Lead.id))
        if status:
            stmt = stmt.where(Lead.status == status)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def count_by_status(self) -> dict[str, int]:
        """Count leads grouped by status."""
        stmt = select(Lead.status, func.count(Lead.id)).group_by(Lead.status)
        result = await self.session.execute(stmt)
        return {status: count for status, count in result.all()}
