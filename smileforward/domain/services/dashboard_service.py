"""Admin dashboard statistics."""

from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.persistence.models.generation import GenerationType
from smileforward.persistence.models.lead import LeadStatus
from smileforward.persistence.repositories.api_usage_log_repository import ApiUsageLogRepository
from smileforward.persistence.repositories.generation_repository import GenerationRepository
from smileforward.persistence.repositories.lead_repository import LeadRepository

ACTIVITY_DAYS = 30


class DashboardService:
    """Aggregates lead and generation counts for the admin console."""

    def __init__(self, session: AsyncSession):
        """Initialize dashboard service."""
        self.lead_repo = LeadRepository(session)
        self.generation_repo = GenerationRepository(session)
        self.usage_repo = ApiUsageLogRepository(session)

    async def get_stats(self, today: date | None = None) -> dict[str, Any]:
        """Totals plus daily generation activity for the last 30 days."""
        today = today or datetime.utcnow().date()

        leads_by_status = {status.value: 0 for status in LeadStatus}
        leads_by_status.update(await self.lead_repo.count_by_status())

        by_type = await self.generation_repo.count_by_type()

        start_day = today - timedelta(days=ACTIVITY_DAYS - 1)
        since = datetime.combine(start_day, datetime.min.time())
        recent = await self.generation_repo.list_created_since(since)

        daily = {
            (start_day + timedelta(days=i)).isoformat(): {"image": 0, "video": 0}
            for i in range(ACTIVITY_DAYS)
        }
        for generation in recent:
            key = generation.created_at.date().isoformat()
            if key in daily and generation.type in daily[key]:
                daily[key][generation.type] += 1

        return {
            "total_leads": sum(leads_by_status.values()),
            "leads_by_status": leads_by_status,
            "image_generations": by_type.get(GenerationType.IMAGE.value, 0),
            "video_generations": by_type.get(GenerationType.VIDEO.value, 0),
            "api_usage": await self.usage_repo.count_by_service(),
            "daily_generations": [
                {"date": day, "image": counts["image"], "video": counts["video"]}
                for day, counts in daily.items()
            ],
        }
