"""API usage log repository."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.persistence.models.api_usage_log import ApiService, ApiUsageLog


class ApiUsageLogRepository:
    """Repository for API usage log entries."""

    def __init__(self, session: AsyncSession):
        """Initialize API usage log repository."""
        self.session = session

    async def create(self, service_name: str | ApiService) -> ApiUsageLog:
        """Record one upstream API call."""
        name = service_name.value if isinstance(service_name, ApiService) else service_name
        entry = ApiUsageLog(service_name=name)
        self.session.add(entry)
        await self.session.commit()
        await self.session.refresh(entry)
        return entry

    async def count_by_service(self) -> dict[str, int]:
        """Count usage log entries grouped by service."""
        stmt = select(ApiUsageLog.service_name, func.count(ApiUsageLog.id)).group_by(
            ApiUsageLog.service_name
        )
        result = await self.session.execute(stmt)
        return {name: count for name, count in result.all()}
