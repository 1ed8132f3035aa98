"""Lead model."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime, Integer, JSON, String
from sqlalchemy.orm import relationship

from smileforward.persistence.database import Base


class LeadStatus(str, Enum):
    """Lead pipeline status, changed by staff."""

    PENDING = "pending"
    CONTACTED = "contacted"
    CONVERTED = "converted"
    REJECTED = "rejected"


class Lead(Base):
    """A prospective patient who unlocked their smile preview."""

    __tablename__ = "leads"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False, index=True)
    status = Column(String(50), nullable=False, default=LeadStatus.PENDING.value, index=True)
    survey_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    generations = relationship(
        "Generation",
        back_populates="lead",
        order_by="Generation.created_at",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, email={self.email}, phone={self.phone}, status={self.status})>"
