"""Selfie validation, upload and restoration analysis."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from smileforward.core.data_uri import decode_data_uri
from smileforward.domain.models.analysis import AnalysisResponse
from smileforward.domain.services.usage_service import UsageService
from smileforward.infrastructure.storage import MediaStorage
from smileforward.llm.gemini_client import GeminiClient, ValidationResult
from smileforward.persistence.models.api_usage_log import ApiService

logger = logging.getLogger(__name__)


class FaceAnalysisService:
    """Gatekeeper, raw upload and analysis steps of the smile pipeline."""

    def __init__(self, session: AsyncSession, gemini: GeminiClient, storage: MediaStorage):
        """Initialize face analysis service."""
        self.gemini = gemini
        self.storage = storage
        self.usage = UsageService(session)

    async def validate(self, image_data_uri: str) -> ValidationResult:
        """Run the gatekeeper on a selfie."""
        result = await self.gemini.validate_image(image_data_uri)
        await self.usage.log_api_usage(ApiService.GEMINI_VISION_VALIDATION)
        if not result.is_valid:
            logger.info(f"Selfie rejected by gatekeeper: {result.reason}")
        return result

    async def analyze(self, image_data_uri: str) -> AnalysisResponse:
        """Produce the restoration plan.

        Raises:
            ValueError: If the payload is not a valid base64 image
            GeminiError: If analysis fails after retries
        """
        plan = await self.gemini.analyze_image(image_data_uri)
        await self.usage.log_api_usage(ApiService.GEMINI_VISION_ANALYSIS)
        logger.info(f"Analysis produced {len(plan.variations)} variations")
        return plan

    async def upload_photo(self, image_data_uri: str) -> str:
        """Store the raw selfie in the short-retention uploads bucket.

        Raises:
            ValueError: If the payload is not a valid base64 image
            StorageError: If the upload fails
        """
        data, mime_type = decode_data_uri(image_data_uri)
        return await self.storage.upload_photo(data, mime_type)
