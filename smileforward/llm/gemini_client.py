"""Gemini and Veo client for validation, analysis, image and video generation."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
from google import genai
from google.genai import errors, types
from pydantic import ValidationError

from smileforward.core.data_uri import decode_data_uri
from smileforward.domain.models.analysis import AnalysisResponse, ValidationVerdict
from smileforward.llm import prompts
from smileforward.llm.config import GeminiConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GeminiError(Exception):
    """Raised when a Gemini or Veo call fails terminally."""
    pass


@dataclass
class ValidationResult:
    """Outcome of the gatekeeper check."""

    is_valid: bool
    reason: str = ""


@dataclass
class VideoOperationStatus:
    """Snapshot of a long-running Veo operation."""

    done: bool
    error: str | None = None
    video_uri: str | None = None
    video_bytes: bytes | None = None
    mime_type: str = "video/mp4"


def is_model_overloaded(error: Exception) -> bool:
    """Whether an upstream error is a transient overload worth retrying."""
    if isinstance(error, errors.APIError):
        if error.code == 503 or (error.status or "").upper() == "UNAVAILABLE":
            return True
    return "overloaded" in str(error).lower()


def extract_text(response: Any) -> str:
    """Pull the text payload out of a generate_content response."""
    text = getattr(response, "text", None)
    if isinstance(text, str):
        return text
    try:
        return response.candidates[0].content.parts[0].text or ""
    except (AttributeError, IndexError, TypeError):
        return ""


def safe_parse_json(text: str) -> Any | None:
    """Parse model JSON output, tolerating markdown code fences."""
    clean = text.replace("```json", "").replace("```", "").strip()
    try:
        return json.loads(clean)
    except json.JSONDecodeError:
        logger.warning("Model returned invalid JSON", extra={"text_prefix": text[:100]})
        return None


def _image_part(data_uri: str) -> types.Part:
    data, mime_type = decode_data_uri(data_uri)
    return types.Part.from_bytes(data=data, mime_type=mime_type)


class GeminiClient:
    """Async client over the google-genai SDK.

    The API key and model names come from the injected GeminiConfig.
    Analysis and image generation retry on model overload with exponential
    backoff; every other failure surfaces as GeminiError.
    """

    def __init__(
        self,
        config: GeminiConfig,
        client: genai.Client | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the client; the SDK client is created lazily."""
        self.config = config
        self._client = client
        self._sleep = sleep

    @property
    def client(self) -> genai.Client:
        """Lazy-load the SDK client."""
        if self._client is None:
            if not self.config.api_key:
                raise GeminiError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(
                api_key=self.config.api_key,
                http_options=types.HttpOptions(api_version="v1beta"),
            )
        return self._client

    async def _with_retries(
        self,
        label: str,
        max_attempts: int,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        attempt = 0
        while True:
            attempt += 1
            try:
                return await call()
            except GeminiError:
                raise
            except Exception as e:
                if is_model_overloaded(e) and attempt < max_attempts:
                    wait_seconds = self.config.retry_base_delay * 2 ** (attempt - 1)
                    logger.warning(
                        f"{label}: model overloaded, retrying in {wait_seconds}s "
                        f"(attempt {attempt}/{max_attempts})"
                    )
                    await self._sleep(wait_seconds)
                    continue
                logger.error(f"{label} failed: {e}")
                raise GeminiError(f"{label} failed: {str(e)[:200]}") from e

    async def validate_image(self, data_uri: str) -> ValidationResult:
        """Gatekeeper check: is this selfie usable for smile design?

        Never raises; upstream failures become an invalid result with a reason.
        """
        if not data_uri:
            return ValidationResult(False, "Empty or corrupt image.")

        try:
            image = _image_part(data_uri)
        except ValueError:
            return ValidationResult(False, "Empty or corrupt image.")

        try:
            response = await self.client.aio.models.generate_content(
                model=self.config.validation_model,
                contents=[image, prompts.VALIDATION_PROMPT],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=ValidationVerdict,
                ),
            )
        except Exception as e:
            logger.error(f"Gatekeeper call failed: {e}")
            return ValidationResult(False, f"Validation error: {str(e)[:100]}")

        text = extract_text(response)
        if not text:
            return ValidationResult(False, "Validation error. Try another photo.")

        parsed = safe_parse_json(text)
        if not isinstance(parsed, dict):
            return ValidationResult(False, "Could not process the AI response.")

        try:
            verdict = ValidationVerdict.model_validate(parsed)
        except ValidationError:
            return ValidationResult(False, "Could not process the AI response.")

        if verdict.is_valid:
            return ValidationResult(True, "")
        return ValidationResult(False, verdict.rejection_reason or "Photo not suitable.")

    async def analyze_image(self, data_uri: str) -> AnalysisResponse:
        """Produce a restoration plan for the selfie.

        Raises:
            ValueError: If the payload is not a valid base64 image
            GeminiError: On terminal failure or unusable model output
        """
        image = _image_part(data_uri)

        async def call() -> AnalysisResponse:
            response = await self.client.aio.models.generate_content(
                model=self.config.analysis_model,
                contents=[image, prompts.ANALYSIS_PROMPT],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=AnalysisResponse,
                ),
            )
            text = extract_text(response)
            if not text:
                raise GeminiError("Analysis failed: no text response from analysis model")
            parsed = safe_parse_json(text)
            if parsed is None:
                raise GeminiError("Analysis failed: invalid JSON from analysis model")
            try:
                plan = AnalysisResponse.model_validate(parsed)
            except ValidationError as e:
                raise GeminiError(f"Analysis failed: unexpected plan shape ({e.error_count()} errors)") from e
            if not plan.variations:
                raise GeminiError("Analysis failed: plan has no variations")
            return plan

        return await self._with_retries("Analysis", self.config.max_analysis_attempts, call)

    async def generate_smile_image(self, data_uri: str, prompt: str) -> tuple[bytes, str]:
        """Generate the smile makeover image.

        Returns:
            Tuple of (image bytes, MIME type)

        Raises:
            ValueError: If the payload is not a valid base64 image
            GeminiError: If generation fails or returns no image
        """
        image = _image_part(data_uri)

        async def call() -> tuple[bytes, str]:
            response = await self.client.aio.models.generate_content(
                model=self.config.image_model,
                contents=[image, prompt],
                config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
            )
            candidates = response.candidates or []
            parts = candidates[0].content.parts if candidates and candidates[0].content else []
            for part in parts or []:
                if part.inline_data and part.inline_data.data:
                    return part.inline_data.data, part.inline_data.mime_type or "image/png"

            text = extract_text(response)
            if text:
                logger.warning(f"Image model returned text instead of image: {text[:200]}")
            raise GeminiError("Image generation failed: no image data in response")

        return await self._with_retries("Image generation", self.config.max_image_attempts, call)

    async def validate_generated_image(self, data_uri: str) -> bool:
        """QA check that the generated image shows the full face vertically.

        When the QA call itself fails the result follows ``qa_fail_open``.
        """
        try:
            response = await self.client.aio.models.generate_content(
                model=self.config.validation_model,
                contents=[_image_part(data_uri), prompts.GENERATED_IMAGE_QA_PROMPT],
            )
        except Exception as e:
            logger.warning(
                f"Generated image QA failed, treating as {'pass' if self.config.qa_fail_open else 'fail'}: {e}"
            )
            return self.config.qa_fail_open

        return extract_text(response).strip().upper() == "PASS"

    async def start_video(
        self,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
        negative_prompt: str = prompts.VIDEO_NEGATIVE_PROMPT,
    ) -> str:
        """Submit a Veo image-to-video job.

        Returns:
            The long-running operation name to poll
        """
        try:
            operation = await self.client.aio.models.generate_videos(
                model=self.config.video_model,
                prompt=prompt,
                image=types.Image(image_bytes=image_bytes, mime_type=mime_type),
                config=types.GenerateVideosConfig(
                    number_of_videos=1,
                    aspect_ratio="9:16",
                    negative_prompt=negative_prompt,
                ),
            )
        except GeminiError:
            raise
        except Exception as e:
            logger.error(f"Veo submission failed: {e}")
            raise GeminiError(f"Video generation failed: {str(e)[:200]}") from e

        if not operation.name:
            raise GeminiError("Video generation failed: no operation name returned")
        return operation.name

    async def get_video_operation(self, operation_name: str) -> VideoOperationStatus:
        """Fetch the current state of a Veo operation."""
        try:
            operation = await self.client.aio.operations.get(
                types.GenerateVideosOperation(name=operation_name)
            )
        except GeminiError:
            raise
        except Exception as e:
            logger.error(f"Veo status check failed for {operation_name}: {e}")
            raise GeminiError(f"Video status check failed: {str(e)[:200]}") from e

        if not operation.done:
            return VideoOperationStatus(done=False)

        if operation.error:
            error = operation.error
            message = error.get("message") if isinstance(error, dict) else str(error)
            return VideoOperationStatus(done=True, error=message or "Unknown error")

        result = operation.response or operation.result
        videos = (getattr(result, "generated_videos", None) or []) if result else []
        if not videos or videos[0].video is None:
            reasons = getattr(result, "rai_media_filtered_reasons", None) if result else None
            if reasons:
                return VideoOperationStatus(done=True, error=f"Video blocked: {'; '.join(reasons)}")
            return VideoOperationStatus(done=True, error="No video returned")

        video = videos[0].video
        return VideoOperationStatus(
            done=True,
            video_uri=video.uri,
            video_bytes=video.video_bytes,
            mime_type=video.mime_type or "video/mp4",
        )

    async def download_video(self, uri: str) -> bytes:
        """Download a generated video; Veo file URIs require the API key."""
        try:
            async with httpx.AsyncClient(
                timeout=self.config.download_timeout_seconds, follow_redirects=True
            ) as http:
                response = await http.get(uri, headers={"x-goog-api-key": self.config.api_key})
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            raise GeminiError(f"Failed to download video: {e}") from e
