"""Audit log model for tracking staff actions."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from smileforward.persistence.database import Base


class AuditAction(str, Enum):
    """Types of auditable actions."""

    # Authentication
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"

    # Lead operations
    LEAD_STATUS_CHANGED = "lead_status_changed"
    VIDEO_GENERATION_REQUESTED = "video_generation_requested"

    # Maintenance
    STORAGE_CLEANUP = "storage_cleanup"


class AuditLog(Base):
    """Audit log for tracking who did what, when and from where."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    user_email = Column(String(255), nullable=True)  # Denormalized for historical records

    action = Column(String(100), nullable=False, index=True)

    resource_type = Column(String(100), nullable=True)  # e.g., "lead", "generation"
    resource_id = Column(Integer, nullable=True)

    details = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self) -> str:
        return f"<AuditLog(id={self.id}, action={self.action}, user_id={self.user_id})>"
