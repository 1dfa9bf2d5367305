from __future__ import annotations
"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Film Studio application settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "Film Studio"
    DEBUG: bool = False
    USE_MOCK_API: bool = True
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"
    DEFAULT_USER_ID: int = 1

    # --- Project storage: "sql" or "memory" (development placeholder) ---
    STORAGE_BACKEND: str = "sql"

    # --- Database (MySQL 8.0+) ---
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = "filmstudio"
    DB_URL: str = ""  # full SQLAlchemy async URL, overrides the DB_* fields
    AUTO_CREATE_TABLES: bool = True

    @property
    def DATABASE_URL(self) -> str:
        """Async connection string; MySQL via asyncmy unless DB_URL is set."""
        if self.DB_URL:
            return self.DB_URL
        encoded_password = quote_plus(self.DB_PASSWORD)
        return (
            f"mysql+asyncmy://{self.DB_USER}:{encoded_password}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            "?charset=utf8mb4"
        )

    # --- Media Volume ---
    MEDIA_VOLUME: str = "media_volume"
    MEDIA_BASE_URL: str = "/media"

    # --- OpenRouter (script writer) ---
    OPENROUTER_BASE_URL: str = "https://openrouter.ai/api/v1"
    OPENROUTER_API_KEY: str = ""
    OPENROUTER_API_KEYS: str = ""  # comma-separated pool, rotated round-robin
    STORY_MODEL: str = "google/gemini-1.5-pro"
    LLM_TIMEOUT: int = 120
    LLM_MAX_RETRIES: int = 3

    # --- Replicate (storyboard images + fallback video) ---
    REPLICATE_API_TOKEN: str = ""
    IMAGE_MODEL: str = "black-forest-labs/flux-pro"
    REPLICATE_VIDEO_MODEL: str = "minimax/video-01"

    # --- Sora (OpenAI videos API) ---
    SORA_API_KEY: str = ""
    SORA_API_URL: str = "https://api.openai.com/v1"
    SORA_MODEL: str = "sora-2"

    # --- Veo3 (Gemini API) ---
    VEO3_API_KEY: str = ""
    VEO3_API_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    VEO3_MODEL: str = "veo-3.0-generate-001"

    # --- Audio: ElevenLabs dialogue, Replicate sound effects ---
    ELEVENLABS_API_KEY: str = ""
    ELEVENLABS_API_URL: str = "https://api.elevenlabs.io/v1"
    ELEVENLABS_MODEL: str = "eleven_monolingual_v1"
    DEFAULT_VOICE_ID: str = "21m00Tcm4TlvDq8ikWAM"
    SFX_MODEL: str = "haoheliu/audioldm-2:b61392adecdd660326fc9cfc5398182437dbe5e97b5decfb36e1a36de68b5b95"
    BRAND_MODEL: str = "google/gemini-1.5-pro"

    # --- FinOps ---
    COST_APPROVAL_THRESHOLD: float = 0.01

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()
