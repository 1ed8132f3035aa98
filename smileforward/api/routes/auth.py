"""Staff login for the admin console."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.api.deps import get_current_user
from smileforward.core.auth import issue_staff_token
from smileforward.core.password import verify_password
from smileforward.domain.services.audit_service import AuditService
from smileforward.infrastructure.rate_limiter import rate_limit
from smileforward.persistence.database import get_db
from smileforward.persistence.models.user import User
from smileforward.persistence.repositories.user_repository import UserRepository

router = APIRouter()


class Credentials(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    email: str


class StaffProfile(BaseModel):
    id: int
    email: str
    is_active: bool


@router.post("/login", response_model=TokenResponse, dependencies=[Depends(rate_limit("auth"))])
async def login(
    credentials: Credentials,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TokenResponse:
    """Exchange staff credentials for a bearer token. Every attempt is audited."""
    user = await UserRepository(db).get_by_email(credentials.email)
    audit = AuditService(db)

    authenticated = (
        user is not None
        and user.is_active
        and verify_password(credentials.password, user.hashed_password)
    )
    if not authenticated:
        await audit.record_login(credentials.email, request)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    response = TokenResponse(access_token=issue_staff_token(user.id, user.email), email=user.email)
    await audit.record_login(user.email, request, user=user)
    return response


@router.get("/me", response_model=StaffProfile)
async def me(current_user: Annotated[User, Depends(get_current_user)]) -> StaffProfile:
    return StaffProfile(id=current_user.id, email=current_user.email, is_active=current_user.is_active)
