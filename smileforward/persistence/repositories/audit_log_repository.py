"""Audit trail queries. Entries are append-only."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.persistence.models.audit_log import AuditLog


@dataclass
class AuditLogFilter:
    """Optional equality filters plus a lower time bound."""

    action: str | None = None
    resource_type: str | None = None
    resource_id: int | None = None
    since: datetime | None = None

    def apply(self, stmt: Select) -> Select:
        if self.action:
            stmt = stmt.where(AuditLog.action == self.action)
        if self.resource_type:
            stmt = stmt.where(AuditLog.resource_type == self.resource_type)
        if self.resource_id is not None:
            stmt = stmt.where(AuditLog.resource_id == self.resource_id)
        if self.since:
            stmt = stmt.where(AuditLog.created_at >= self.since)
        return stmt


class AuditLogRepository:
    """Not a BaseRepository: audit entries are never updated."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, entry: AuditLog) -> AuditLog:
        self.session.add(entry)
        await self.session.commit()
        return entry

    async def search(self, criteria: AuditLogFilter, skip: int = 0, limit: int = 50) -> list[AuditLog]:
        """Matching entries, newest first."""
        stmt = (
            criteria.apply(select(AuditLog))
            .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(await self.session.scalars(stmt))

    async def count(self, criteria: AuditLogFilter) -> int:
        result = await self.session.execute(criteria.apply(select(func.count(AuditLog.id))))
        return result.scalar_one()
