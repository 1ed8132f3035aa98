"""Staff user lookups."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.persistence.models.user import User
from smileforward.persistence.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> User | None:
        """Emails are stored lowercased, so lookups normalize the input the same way."""
        return await self.session.scalar(select(User).filter_by(email=email.strip().lower()))
