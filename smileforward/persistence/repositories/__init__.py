"""Repositories for data access."""

from smileforward.persistence.repositories.api_usage_log_repository import ApiUsageLogRepository
from smileforward.persistence.repositories.audit_log_repository import AuditLogRepository
from smileforward.persistence.repositories.base import BaseRepository
from smileforward.persistence.repositories.generation_repository import GenerationRepository
from smileforward.persistence.repositories.lead_repository import LeadRepository
from smileforward.persistence.repositories.session_repository import SessionRepository
from smileforward.persistence.repositories.user_repository import UserRepository

__all__ = [
    "ApiUsageLogRepository",
    "AuditLogRepository",
    "BaseRepository",
    "GenerationRepository",
    "LeadRepository",
    "SessionRepository",
    "UserRepository",
]
