"""Generation model: one produced AI artifact (image or video)."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from smileforward.persistence.database import Base


class GenerationType(str, Enum):
    """Kinds of generated media."""

    IMAGE = "image"
    VIDEO = "video"


class GenerationStatus(str, Enum):
    """Lifecycle of a generation job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class Generation(Base):
    """Generated smile image or video, linked to a lead once the form is submitted."""

    __tablename__ = "generations"

    id = Column(Integer, primary_key=True, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=True, index=True)
    type = Column(String(20), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=GenerationStatus.PENDING.value, index=True)
    input_path = Column(Text, nullable=True)
    output_path = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_ = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    lead = relationship("Lead", back_populates="generations")

    def __repr__(self) -> str:
        return (
            f"<Generation(id={self.id}, lead_id={self.lead_id}, type={self.type}, "
            f"status={self.status})>"
        )
