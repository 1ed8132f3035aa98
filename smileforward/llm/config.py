"""Gemini client configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GeminiConfig:
    """Explicit configuration injected into GeminiClient."""

    api_key: str
    validation_model: str = "gemini-2.5-flash"
    analysis_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-3-pro-image-preview"
    video_model: str = "veo-3.1-fast-generate-preview"
    max_analysis_attempts: int = 3
    max_image_attempts: int = 5
    retry_base_delay: float = 3.0  # seconds, doubled per attempt
    qa_fail_open: bool = False
    download_timeout_seconds: float = 60.0
