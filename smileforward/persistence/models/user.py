"""Staff user model for the admin console."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from smileforward.persistence.database import Base


class User(Base):
    """Clinic staff member with admin console access."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
