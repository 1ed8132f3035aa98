"""Smile makeover image generation."""

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.core.data_uri import to_data_uri
from smileforward.domain.services.usage_service import UsageService
from smileforward.infrastructure.storage import MediaStorage
from smileforward.llm.gemini_client import GeminiClient
from smileforward.llm.prompts import build_smile_prompt
from smileforward.persistence.models.api_usage_log import ApiService
from smileforward.persistence.models.generation import GenerationStatus, GenerationType
from smileforward.persistence.repositories.generation_repository import GenerationRepository

logger = logging.getLogger(__name__)


class SmileGenerationError(Exception):
    """Raised when a generated image cannot be delivered."""
    pass


@dataclass
class GeneratedSmile:
    """A stored smile image, not yet linked to a lead."""

    generation_id: int
    public_url: str
    output_path: str


class SmileGenerationService:
    """Generates the makeover image, stores it and records the Generation."""

    def __init__(
        self,
        session: AsyncSession,
        gemini: GeminiClient,
        storage: MediaStorage,
        qa_enabled: bool = False,
        qa_required: bool = False,
    ):
        """Initialize smile generation service."""
        self.gemini = gemini
        self.storage = storage
        self.qa_enabled = qa_enabled
        self.qa_required = qa_required
        self.usage = UsageService(session)
        self.generation_repo = GenerationRepository(session)

    async def generate(
        self,
        image_data_uri: str,
        prompt_options: dict[str, Any] | None = None,
        input_path: str | None = None,
    ) -> GeneratedSmile:
        """Generate, store and record one smile image.

        Args:
            image_data_uri: The validated selfie
            prompt_options: Prompt data of the chosen variation
            input_path: Uploads-bucket path of the raw selfie, if stored

        Raises:
            ValueError: If the payload is not a valid base64 image
            GeminiError: If the image model fails
            StorageError: If the upload fails
            SmileGenerationError: If QA is required and the image fails it
        """
        prompt = build_smile_prompt(prompt_options)
        image_bytes, mime_type = await self.gemini.generate_smile_image(image_data_uri, prompt)
        await self.usage.log_api_usage(ApiService.GEMINI_IMAGE)

        qa_passed = None
        if self.qa_enabled:
            qa_passed = await self.gemini.validate_generated_image(to_data_uri(image_bytes, mime_type))
            await self.usage.log_api_usage(ApiService.GEMINI_VISION_VALIDATION)
            if not qa_passed:
                logger.warning("Generated image failed framing QA")
                if self.qa_required:
                    raise SmileGenerationError("Generated image failed quality check. Please try again.")

        output_path, public_url = await self.storage.upload_generated(image_bytes, mime_type)

        generation = await self.generation_repo.create(
            type=GenerationType.IMAGE.value,
            status=GenerationStatus.COMPLETED.value,
            input_path=input_path,
            output_path=output_path,
            metadata_={
                "public_url": public_url,
                "prompt_options": prompt_options or {},
                "qa_passed": qa_passed,
            },
        )
        logger.info(f"Smile image generated: generation_id={generation.id}, path={output_path}")

        return GeneratedSmile(
            generation_id=generation.id,
            public_url=public_url,
            output_path=output_path,
        )
