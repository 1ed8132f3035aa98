"""API usage tracking for upstream AI calls."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.persistence.models.api_usage_log import ApiService
from smileforward.persistence.repositories.api_usage_log_repository import ApiUsageLogRepository

logger = logging.getLogger(__name__)


class UsageService:
    """Records upstream AI usage for quota tracking."""

    def __init__(self, session: AsyncSession):
        """Initialize usage service."""
        self.session = session
        self.repo = ApiUsageLogRepository(session)

    async def log_api_usage(self, service: ApiService | str) -> None:
        """Record one call; failures are logged and never raised."""
        try:
            await self.repo.create(service)
        except SQLAlchemyError as e:
            logger.error(f"Failed to log API usage for {service}: {e}")
            await self.session.rollback()
