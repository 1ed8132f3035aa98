"""Database models."""

from smileforward.persistence.models.api_usage_log import ApiUsageLog, ApiService
from smileforward.persistence.models.audit_log import AuditAction, AuditLog
from smileforward.persistence.models.generation import (
    Generation,
    GenerationStatus,
    GenerationType,
)
from smileforward.persistence.models.lead import Lead, LeadStatus
from smileforward.persistence.models.session import SmileSession
from smileforward.persistence.models.user import User

__all__ = [
    "ApiService",
    "ApiUsageLog",
    "AuditAction",
    "AuditLog",
    "Generation",
    "GenerationStatus",
    "GenerationType",
    "Lead",
    "LeadStatus",
    "SmileSession",
    "User",
]
