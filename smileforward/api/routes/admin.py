"""Admin console endpoints: leads, video requests, dashboard and audit trail."""

import logging
from datetime import datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.api.deps import get_current_user, get_gemini_client
from smileforward.api.schemas.lead import LeadDetailResponse, LeadResponse
from smileforward.domain.services.audit_service import AuditService
from smileforward.domain.services.dashboard_service import DashboardService
from smileforward.domain.services.lead_service import LeadNotFoundError, LeadService
from smileforward.domain.services.video_generation_service import (
    VideoGenerationError,
    VideoGenerationService,
)
from smileforward.infrastructure.storage import MediaStorage, StorageError, get_media_storage
from smileforward.llm.gemini_client import GeminiClient, GeminiError
from smileforward.persistence.database import get_db
from smileforward.persistence.models.audit_log import AuditAction
from smileforward.persistence.models.user import User
from smileforward.persistence.repositories.audit_log_repository import AuditLogFilter, AuditLogRepository

logger = logging.getLogger(__name__)

router = APIRouter()


class LeadsListResponse(BaseModel):
    """Leads list response."""

    leads: list[LeadResponse]
    total: int


class LeadStatusUpdate(BaseModel):
    """Lead status update request."""

    status: str  # 'pending', 'contacted', 'converted', 'rejected'


class VideoJobResponse(BaseModel):
    success: bool = True
    generation_id: int
    operation_name: str


class AuditLogResponse(BaseModel):
    """Response model for audit log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int | None
    user_email: str | None
    action: str
    resource_type: str | None
    resource_id: int | None
    details: dict | None
    ip_address: str | None
    created_at: datetime


class AuditLogListResponse(BaseModel):
    """Response model for list of audit logs."""

    logs: list[AuditLogResponse]
    total: int


@router.get("/leads", response_model=LeadsListResponse)
async def list_leads(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    status: str | None = Query(None),
) -> LeadsListResponse:
    """List leads newest first, optionally filtered by status."""
    lead_service = LeadService(db)
    leads = await lead_service.list_leads(skip=skip, limit=limit, status=status)
    total = await lead_service.count_leads(status=status)

    return LeadsListResponse(
        leads=[LeadResponse.from_model(lead) for lead in leads],
        total=total,
    )


@router.get("/leads/{lead_id}", response_model=LeadDetailResponse)
async def get_lead(
    lead_id: int,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> LeadDetailResponse:
    """Get a lead with its generated images and videos."""
    lead = await LeadService(db).get_lead(lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    return LeadDetailResponse.from_model(lead)


@router.patch("/leads/{lead_id}/status", response_model=LeadResponse)
async def update_lead_status(
    lead_id: int,
    status_update: LeadStatusUpdate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> LeadResponse:
    """Move a lead through the pipeline."""
    lead_service = LeadService(db)
    previous = await lead_service.get_lead(lead_id)
    if previous is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    old_status = previous.status

    try:
        lead = await lead_service.update_status(lead_id, status_update.status)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status: {status_update.status}",
        )
    except LeadNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    # Built before auditing: a failed audit write expires the session
    response = LeadResponse.from_model(lead)
    await AuditService(db).record(
        AuditAction.LEAD_STATUS_CHANGED,
        request,
        user=current_user,
        resource_type="lead",
        resource_id=lead_id,
        details={"from": old_status, "to": response.status},
    )
    return response


@router.post("/leads/{lead_id}/video", response_model=VideoJobResponse)
async def request_lead_video(
    lead_id: int,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    gemini: Annotated[GeminiClient, Depends(get_gemini_client)],
    storage: Annotated[MediaStorage, Depends(get_media_storage)],
) -> VideoJobResponse:
    """Start video generation for a lead from the console."""
    try:
        job = await VideoGenerationService(db, gemini, storage).start(lead_id)
    except LeadNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    except VideoGenerationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (GeminiError, StorageError) as e:
        logger.error(f"Video request failed for lead {lead_id}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    await AuditService(db).record(
        AuditAction.VIDEO_GENERATION_REQUESTED,
        request,
        user=current_user,
        resource_type="generation",
        resource_id=job.generation_id,
        details={"lead_id": lead_id, "operation_name": job.operation_name},
    )
    return VideoJobResponse(generation_id=job.generation_id, operation_name=job.operation_name)


@router.get("/dashboard")
async def get_dashboard(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """Lead and generation totals with 30 days of activity."""
    return await DashboardService(db).get_stats()


@router.get("/audit-logs", response_model=AuditLogListResponse)
async def list_audit_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    action: str | None = None,
    resource_type: str | None = None,
    resource_id: int | None = None,
    start_date: datetime | None = None,
) -> AuditLogListResponse:
    """List audit logs newest first; ``total`` counts every match, not just this page."""
    repo = AuditLogRepository(db)
    criteria = AuditLogFilter(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        since=start_date,
    )
    logs = await repo.search(criteria, skip=skip, limit=limit)
    return AuditLogListResponse(
        logs=[AuditLogResponse.model_validate(log) for log in logs],
        total=await repo.count(criteria),
    )
