"""Public lead capture endpoints used by the widget."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.api.schemas.lead import LeadResponse
from smileforward.core.phone import is_plausible_phone
from smileforward.domain.services.lead_service import LeadNotFoundError, LeadService
from smileforward.infrastructure.rate_limiter import rate_limit
from smileforward.persistence.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


class LeadCreateRequest(BaseModel):
    """Gated form submission."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    phone: str = Field(..., min_length=1, max_length=50)
    generation_id: int | None = None
    session_id: str | None = None
    original_image_url: str | None = None
    analysis: dict[str, Any] | None = None
    results: list[dict[str, Any]] | None = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str) -> str:
        if not is_plausible_phone(value):
            raise ValueError("Invalid phone number")
        return value


class SurveyRequest(BaseModel):
    """Video preference survey. Unknown keys are kept as-is."""

    model_config = {"extra": "allow"}

    ageRange: str | None = None
    improvement: str | None = None
    timeframe: str | None = None


class LeadEnvelope(BaseModel):
    success: bool = True
    data: LeadResponse


@router.post(
    "",
    response_model=LeadEnvelope,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("leads"))],
)
async def create_lead(
    payload: LeadCreateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> LeadEnvelope:
    """Persist a lead and link the generation shown behind the gate."""
    lead = await LeadService(db).create_lead(
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        generation_id=payload.generation_id,
        session_id=payload.session_id,
        original_image_url=payload.original_image_url,
        analysis=payload.analysis,
        results=payload.results,
    )
    return LeadEnvelope(data=LeadResponse.from_model(lead))


@router.post(
    "/{lead_id}/survey",
    response_model=LeadEnvelope,
    dependencies=[Depends(rate_limit("leads"))],
)
async def submit_survey(
    lead_id: int,
    payload: SurveyRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> LeadEnvelope:
    """Store video preferences on the lead."""
    survey = payload.model_dump(exclude_none=True)
    try:
        lead = await LeadService(db).update_survey(lead_id, survey)
    except LeadNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    logger.info(f"Survey stored for lead {lead_id}")
    return LeadEnvelope(data=LeadResponse.from_model(lead))
