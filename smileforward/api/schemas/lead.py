"""Response schemas for leads and generations."""

from typing import Any

from pydantic import BaseModel

from smileforward.core.phone import whatsapp_link
from smileforward.persistence.models.generation import Generation
from smileforward.persistence.models.lead import Lead


def _isoformat(value) -> str | None:
    return value.isoformat() if value else None


class GenerationResponse(BaseModel):
    """Generation record as returned to clients."""

    id: int
    lead_id: int | None
    type: str
    status: str
    input_path: str | None
    output_path: str | None
    public_url: str | None = None
    metadata: dict[str, Any] | None
    created_at: str | None

    @classmethod
    def from_model(cls, generation: Generation) -> "GenerationResponse":
        metadata = generation.metadata_ or {}
        return cls(
            id=generation.id,
            lead_id=generation.lead_id,
            type=generation.type,
            status=generation.status,
            input_path=generation.input_path,
            output_path=generation.output_path,
            public_url=metadata.get("public_url"),
            metadata=metadata,
            created_at=_isoformat(generation.created_at),
        )


class LeadResponse(BaseModel):
    """Lead response model."""

    id: int
    name: str
    email: str
    phone: str
    status: str
    survey_data: dict[str, Any] | None
    created_at: str | None

    @classmethod
    def from_model(cls, lead: Lead) -> "LeadResponse":
        return cls(
            id=lead.id,
            name=lead.name,
            email=lead.email,
            phone=lead.phone,
            status=lead.status,
            survey_data=lead.survey_data,
            created_at=_isoformat(lead.created_at),
        )


class LeadDetailResponse(LeadResponse):
    """Lead with generated media, as shown in the admin detail view."""

    whatsapp_url: str | None = None
    generations: list[GenerationResponse] = []

    @classmethod
    def from_model(cls, lead: Lead) -> "LeadDetailResponse":
        base = LeadResponse.from_model(lead)
        return cls(
            **base.model_dump(),
            whatsapp_url=whatsapp_link(lead.phone),
            generations=[GenerationResponse.from_model(g) for g in lead.generations],
        )
