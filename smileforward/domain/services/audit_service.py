"""Audit trail of staff and maintenance actions."""

import logging
from typing import Any

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.core.request_context import client_ip
from smileforward.persistence.models.audit_log import AuditAction, AuditLog
from smileforward.persistence.models.user import User
from smileforward.persistence.repositories.audit_log_repository import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditService:
    """Writes audit entries; a failed write is logged and never fails the request.

    Usage:
        await AuditService(db).record(
            AuditAction.LEAD_STATUS_CHANGED, request, user=user,
            resource_type="lead", resource_id=lead.id, details={"from": "pending", "to": "contacted"},
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = AuditLogRepository(session)

    async def record(
        self,
        action: AuditAction,
        request: Request | None = None,
        *,
        user: User | None = None,
        email: str | None = None,
        resource_type: str | None = None,
        resource_id: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Append one entry.

        Args:
            action: What happened
            request: Source of the client IP and user agent
            user: Acting staff user, if authenticated
            email: Attempted email when there is no user (failed logins)
            resource_type: Kind of record affected ("lead", "generation", "storage")
            resource_id: Id of the affected record
            details: Action-specific JSON payload
        """
        entry = AuditLog(
            action=action.value,
            user_id=user.id if user else None,
            user_email=user.email if user else email,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            ip_address=client_ip(request) if request else None,
            user_agent=request.headers.get("User-Agent") if request else None,
        )
        try:
            await self.repo.append(entry)
        except SQLAlchemyError as e:
            logger.error(f"Failed to write audit entry '{action.value}': {e}")
            await self.session.rollback()

    async def record_login(self, email: str, request: Request, user: User | None = None) -> None:
        """Record a login attempt; no user means the attempt failed."""
        action = AuditAction.LOGIN if user else AuditAction.LOGIN_FAILED
        await self.record(action, request, user=user, email=email)
