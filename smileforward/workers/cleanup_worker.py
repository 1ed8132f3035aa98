"""Storage retention worker, triggered by Cloud Scheduler."""

import hmac
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.domain.services.audit_service import AuditService
from smileforward.domain.services.cleanup_service import CleanupService
from smileforward.infrastructure.storage import MediaStorage, StorageError, get_media_storage
from smileforward.persistence.database import get_db
from smileforward.persistence.models.audit_log import AuditAction
from smileforward.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()


async def verify_worker_secret(authorization: Annotated[str | None, Header()] = None) -> None:
    """Require the shared worker secret as a bearer token."""
    expected = settings.worker_secret
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Worker secret is not configured",
        )
    token = (authorization or "").removeprefix("Bearer ").strip()
    if not hmac.compare_digest(token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


@router.post("/cleanup-storage", dependencies=[Depends(verify_worker_secret)])
async def cleanup_storage(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    storage: Annotated[MediaStorage, Depends(get_media_storage)],
) -> dict[str, Any]:
    """Delete raw uploads older than the retention window."""
    service = CleanupService(storage, retention_hours=settings.upload_retention_hours)
    try:
        deleted = await service.purge_expired_uploads()
    except StorageError as e:
        logger.error(f"Storage cleanup failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    await AuditService(db).record(
        AuditAction.STORAGE_CLEANUP,
        request,
        resource_type="storage",
        details={"deleted_count": len(deleted)},
    )
    return {"success": True, "message": f"Deleted {len(deleted)} old files", "deleted": deleted}
