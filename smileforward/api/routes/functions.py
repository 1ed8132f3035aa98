"""AI proxy endpoints called by the widget and the admin console.

Responses use the ``{success, data?, error?}`` envelope. Upstream model and
storage failures map to 502, bad input to 400 and unknown records to 404.
"""

import logging
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.api.deps import get_gemini_client
from smileforward.api.schemas.lead import GenerationResponse
from smileforward.domain.services.face_analysis_service import FaceAnalysisService
from smileforward.domain.services.lead_service import LeadNotFoundError
from smileforward.domain.services.smile_generation_service import (
    SmileGenerationError,
    SmileGenerationService,
)
from smileforward.domain.services.video_generation_service import (
    TERMINAL_STATUSES,
    VideoGenerationError,
    VideoGenerationService,
)
from smileforward.infrastructure.rate_limiter import rate_limit
from smileforward.infrastructure.storage import MediaStorage, StorageError, get_media_storage
from smileforward.llm.gemini_client import GeminiClient, GeminiError
from smileforward.persistence.database import get_db
from smileforward.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()

DbSession = Annotated[AsyncSession, Depends(get_db)]
Gemini = Annotated[GeminiClient, Depends(get_gemini_client)]
Storage = Annotated[MediaStorage, Depends(get_media_storage)]


class AnalyzeFaceRequest(BaseModel):
    image_base64: str = Field(..., min_length=1)
    mode: Literal["validate", "analyze"] = "analyze"


class UploadRequest(BaseModel):
    image_base64: str = Field(..., min_length=1)


class GenerateSmileRequest(BaseModel):
    image_base64: str = Field(..., min_length=1)
    prompt_options: dict[str, Any] | None = None
    input_path: str | None = None


class GenerateVideoRequest(BaseModel):
    lead_id: int


class CheckVideoRequest(BaseModel):
    generation_id: int


def error_response(status_code: int, message: str) -> JSONResponse:
    """Build the failure envelope."""
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/analyze-face", dependencies=[Depends(rate_limit("analysis"))])
async def analyze_face(payload: AnalyzeFaceRequest, db: DbSession, gemini: Gemini, storage: Storage):
    """Validate a selfie or produce its restoration plan."""
    service = FaceAnalysisService(db, gemini, storage)

    if payload.mode == "validate":
        result = await service.validate(payload.image_base64)
        return {
            "success": True,
            "data": {"is_valid": result.is_valid, "rejection_reason": result.reason},
        }

    try:
        plan = await service.analyze(payload.image_base64)
    except ValueError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except GeminiError as e:
        return error_response(status.HTTP_502_BAD_GATEWAY, str(e))
    return {"success": True, "data": plan.model_dump(mode="json", exclude_none=True)}


@router.post("/upload", dependencies=[Depends(rate_limit("analysis"))])
async def upload_photo(payload: UploadRequest, db: DbSession, gemini: Gemini, storage: Storage):
    """Store the raw selfie in the uploads bucket."""
    service = FaceAnalysisService(db, gemini, storage)
    try:
        path = await service.upload_photo(payload.image_base64)
    except ValueError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except StorageError as e:
        return error_response(status.HTTP_502_BAD_GATEWAY, str(e))
    return {"success": True, "data": {"path": path}}


@router.post("/generate-smile", dependencies=[Depends(rate_limit("generation"))])
async def generate_smile(payload: GenerateSmileRequest, db: DbSession, gemini: Gemini, storage: Storage):
    """Generate the smile makeover image."""
    service = SmileGenerationService(
        db,
        gemini,
        storage,
        qa_enabled=settings.generated_image_qa_enabled,
        qa_required=settings.generated_image_qa_required,
    )
    try:
        result = await service.generate(
            payload.image_base64,
            prompt_options=payload.prompt_options,
            input_path=payload.input_path,
        )
    except SmileGenerationError as e:
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, str(e))
    except ValueError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except (GeminiError, StorageError) as e:
        logger.error(f"Smile generation failed: {e}")
        return error_response(status.HTTP_502_BAD_GATEWAY, str(e))

    return {
        "success": True,
        "public_url": result.public_url,
        "generation_id": result.generation_id,
    }


@router.post("/generate-video", dependencies=[Depends(rate_limit("generation"))])
async def generate_video(payload: GenerateVideoRequest, db: DbSession, gemini: Gemini, storage: Storage):
    """Submit a Veo job for a lead's smile image."""
    service = VideoGenerationService(db, gemini, storage)
    try:
        job = await service.start(payload.lead_id)
    except LeadNotFoundError as e:
        return error_response(status.HTTP_404_NOT_FOUND, str(e))
    except VideoGenerationError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except (GeminiError, StorageError) as e:
        logger.error(f"Video submission failed for lead {payload.lead_id}: {e}")
        return error_response(status.HTTP_502_BAD_GATEWAY, str(e))

    return {
        "success": True,
        "generation_id": job.generation_id,
        "operation_name": job.operation_name,
    }


@router.post("/check-video", dependencies=[Depends(rate_limit("polling"))])
async def check_video(payload: CheckVideoRequest, db: DbSession, gemini: Gemini, storage: Storage):
    """Advance a video job and return its record.

    A failed job is returned as a record with status ``error`` so pollers
    stop; failures of the check itself return the error envelope.
    """
    service = VideoGenerationService(db, gemini, storage)
    try:
        generation = await service.check(payload.generation_id)
    except VideoGenerationError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except (GeminiError, StorageError) as e:
        logger.error(f"Video status check failed for {payload.generation_id}: {e}")
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))

    if generation.status not in TERMINAL_STATUSES:
        return {"status": "pending", "id": generation.id}
    return GenerationResponse.from_model(generation).model_dump()
