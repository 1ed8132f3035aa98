"""Retention cleanup for raw user photos."""

import logging
from datetime import datetime, timedelta

from smileforward.infrastructure.storage import MediaStorage

logger = logging.getLogger(__name__)


class CleanupService:
    """Deletes uploads older than the retention window."""

    def __init__(self, storage: MediaStorage, retention_hours: int = 24):
        """Initialize cleanup service."""
        self.storage = storage
        self.retention = timedelta(hours=retention_hours)

    async def purge_expired_uploads(self, now: datetime | None = None) -> list[str]:
        """Delete expired raw uploads and return their names."""
        deleted = await self.storage.delete_expired_uploads(self.retention, now=now)
        logger.info(f"Upload cleanup finished: {len(deleted)} files deleted")
        return deleted
