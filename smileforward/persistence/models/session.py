"""Saved smile session (analysis and results history)."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text

from smileforward.persistence.database import Base


class SmileSession(Base):
    """Snapshot of one widget session, written after the lead is captured."""

    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=True, index=True)
    original_image_url = Column(Text, nullable=True)
    analysis_data = Column(JSON, nullable=True)
    results = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<SmileSession(id={self.id}, lead_id={self.lead_id})>"
