"""Veo video generation derived from a lead's smile image."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.domain.services.lead_service import LeadNotFoundError
from smileforward.domain.services.usage_service import UsageService
from smileforward.infrastructure.storage import MediaStorage
from smileforward.llm.gemini_client import GeminiClient
from smileforward.llm.prompts import build_video_prompt, resolve_age_range
from smileforward.persistence.models.api_usage_log import ApiService
from smileforward.persistence.models.generation import (
    Generation,
    GenerationStatus,
    GenerationType,
)
from smileforward.persistence.repositories.generation_repository import GenerationRepository
from smileforward.persistence.repositories.lead_repository import LeadRepository

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = {GenerationStatus.COMPLETED.value, GenerationStatus.ERROR.value}


class VideoGenerationError(Exception):
    """Raised when a video job cannot be started or checked."""
    pass


@dataclass
class VideoJob:
    """A submitted video job."""

    generation_id: int
    operation_name: str


class VideoGenerationService:
    """Starts Veo jobs and advances them to completion on status checks."""

    def __init__(self, session: AsyncSession, gemini: GeminiClient, storage: MediaStorage):
        """Initialize video generation service."""
        self.gemini = gemini
        self.storage = storage
        self.usage = UsageService(session)
        self.lead_repo = LeadRepository(session)
        self.generation_repo = GenerationRepository(session)

    async def start(self, lead_id: int) -> VideoJob:
        """Submit a video job for a lead.

        The video is always derived from the lead's latest completed image.

        Raises:
            LeadNotFoundError: If the lead does not exist
            VideoGenerationError: If the lead has no completed smile image
            GeminiError: If Veo rejects the submission
            StorageError: If the source image cannot be read
        """
        lead = await self.lead_repo.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError("Lead not found")

        image = await self.generation_repo.get_latest_completed_image(lead_id)
        if image is None or not image.output_path:
            raise VideoGenerationError("No smile image found for this lead")

        age_range = resolve_age_range(lead.survey_data)
        prompt = build_video_prompt(age_range)

        image_bytes, mime_type = await self.storage.download_generated(image.output_path)

        logger.info(f"Starting video generation for lead {lead_id} (scenario {age_range})")
        operation_name = await self.gemini.start_video(image_bytes, mime_type, prompt)

        generation = await self.generation_repo.create(
            lead_id=lead_id,
            type=GenerationType.VIDEO.value,
            status=GenerationStatus.PENDING.value,
            input_path=image.output_path,
            metadata_={
                "operation_name": operation_name,
                "scenario": age_range,
                "prompt": prompt,
            },
        )
        return VideoJob(generation_id=generation.id, operation_name=operation_name)

    async def check(self, generation_id: int) -> Generation:
        """Advance a video job by one status check.

        Returns the generation; a status of pending or processing means the
        job is still running.

        Raises:
            VideoGenerationError: If the record is missing or not a video job
            GeminiError: If the status check itself fails
            StorageError: If the finished video cannot be stored
        """
        generation = await self.generation_repo.get_by_id(generation_id)
        if generation is None:
            raise VideoGenerationError("Generation record not found")
        if generation.type != GenerationType.VIDEO.value:
            raise VideoGenerationError("Generation is not a video job")
        if generation.status in TERMINAL_STATUSES:
            return generation

        metadata = dict(generation.metadata_ or {})
        operation_name = metadata.get("operation_name")
        if not operation_name:
            raise VideoGenerationError("Operation name missing in metadata")

        operation = await self.gemini.get_video_operation(operation_name)

        if not operation.done:
            if generation.status == GenerationStatus.PENDING.value:
                generation = await self.generation_repo.update(
                    generation.id, status=GenerationStatus.PROCESSING.value
                )
            return generation

        if operation.error:
            logger.warning(f"Video generation {generation_id} failed: {operation.error}")
            return await self._mark_error(generation_id, metadata, operation.error)

        video_bytes = operation.video_bytes
        if video_bytes is None and operation.video_uri:
            video_bytes = await self.gemini.download_video(operation.video_uri)
        if not video_bytes:
            return await self._mark_error(generation_id, metadata, "Unsupported video data format")

        output_path = f"videos/video_{generation_id}.mp4"
        _, public_url = await self.storage.upload_generated(
            video_bytes, operation.mime_type or "video/mp4", path=output_path
        )
        await self.usage.log_api_usage(ApiService.GOOGLE_VEO_VIDEO)

        logger.info(f"Video generation {generation_id} completed: {output_path}")
        # The usage write may roll back and expire the loaded record
        return await self.generation_repo.update(
            generation_id,
            status=GenerationStatus.COMPLETED.value,
            output_path=output_path,
            metadata_={**metadata, "public_url": public_url},
        )

    async def _mark_error(self, generation_id: int, metadata: dict, message: str) -> Generation:
        return await self.generation_repo.update(
            generation_id,
            status=GenerationStatus.ERROR.value,
            metadata_={**metadata, "error": message},
        )
