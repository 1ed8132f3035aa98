"""Application settings using Pydantic BaseSettings."""

import os
import re

from pydantic_settings import BaseSettings, SettingsConfigDict

from smileforward.llm.config import GeminiConfig

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./smileforward.db"


def get_async_database_url() -> str:
    """Get database URL converted for the asyncpg driver."""
    url = os.environ.get("DATABASE_URL", "") or settings.database_url or DEFAULT_DATABASE_URL
    # Convert postgres:// to postgresql+asyncpg:// for SQLAlchemy async
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    # asyncpg doesn't support sslmode, it uses ssl parameter
    if "sslmode=" in url:
        url = re.sub(r'[?&]sslmode=[^&]*', '', url)
        url = url.rstrip('?&')
    return url


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # GCP Configuration (optional for local dev)
    gcp_project_id: str = "local-development"
    gcs_uploads_bucket: str = "uploads"
    gcs_generated_bucket: str = "generated"
    upload_retention_hours: int = 24

    # Database (Postgres in production, SQLite locally)
    database_url: str = ""

    # Redis (optional)
    redis_url: str = "redis://localhost:6379/0"
    redis_enabled: bool = False  # Disable Redis by default for dev

    # JWT (admin console)
    jwt_secret_key: str = "dev-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60

    # Gemini / Veo
    gemini_api_key: str = ""
    gemini_validation_model: str = "gemini-2.5-flash"
    gemini_analysis_model: str = "gemini-2.5-flash"
    gemini_image_model: str = "gemini-3-pro-image-preview"
    gemini_video_model: str = "veo-3.1-fast-generate-preview"
    gemini_max_analysis_attempts: int = 3
    gemini_max_image_attempts: int = 5
    gemini_retry_base_delay_seconds: float = 3.0

    # Generated image QA check
    generated_image_qa_enabled: bool = False
    generated_image_qa_required: bool = False
    generated_image_qa_fail_open: bool = False

    # Widget handoff
    clinic_whatsapp_number: str = ""

    # Cleanup worker
    worker_secret: str = ""

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    api_v1_prefix: str = "/api/v1"
    functions_prefix: str = "/functions/v1"
    cors_allow_origins: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def gemini_config(self) -> GeminiConfig:
        """Build the Gemini client configuration from these settings."""
        return GeminiConfig(
            api_key=self.gemini_api_key,
            validation_model=self.gemini_validation_model,
            analysis_model=self.gemini_analysis_model,
            image_model=self.gemini_image_model,
            video_model=self.gemini_video_model,
            max_analysis_attempts=self.gemini_max_analysis_attempts,
            max_image_attempts=self.gemini_max_image_attempts,
            retry_base_delay=self.gemini_retry_base_delay_seconds,
            qa_fail_open=self.generated_image_qa_fail_open,
        )


settings = Settings()
