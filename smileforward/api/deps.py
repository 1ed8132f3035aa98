"""FastAPI dependencies for auth and service wiring."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.core.auth import staff_id_from_token
from smileforward.llm.gemini_client import GeminiClient
from smileforward.persistence.database import get_db
from smileforward.persistence.models.user import User
from smileforward.persistence.repositories.user_repository import UserRepository
from smileforward.settings import settings

security = HTTPBearer()


@lru_cache
def get_gemini_client() -> GeminiClient:
    """Shared Gemini client built from settings."""
    return GeminiClient(settings.gemini_config())


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get current authenticated staff user from JWT token.

    Raises:
        HTTPException: If authentication fails
    """
    user_id = staff_id_from_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await UserRepository(db).get_by_id(user_id)
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Inactive or unknown user",
        )

    return user
