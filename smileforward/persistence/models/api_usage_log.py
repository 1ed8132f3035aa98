"""API usage log for tracking generative AI calls."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String

from smileforward.persistence.database import Base


class ApiService(str, Enum):
    """Billable upstream AI services."""

    GEMINI_VISION_VALIDATION = "GEMINI_VISION_VALIDATION"
    GEMINI_VISION_ANALYSIS = "GEMINI_VISION_ANALYSIS"
    GEMINI_IMAGE = "GEMINI_IMAGE"
    GOOGLE_VEO_VIDEO = "GOOGLE_VEO_VIDEO"


class ApiUsageLog(Base):
    """One successful call to an upstream AI service."""

    __tablename__ = "api_usage_logs"

    id = Column(Integer, primary_key=True, index=True)
    service_name = Column(String(100), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<ApiUsageLog(id={self.id}, service_name={self.service_name})>"
