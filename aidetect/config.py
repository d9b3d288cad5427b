"""
Configuration Settings for the AI Image Detector service.

Environment variables:
- OPENROUTER_API_KEY: Enables the OpenRouter provider
- OPENROUTER_MODEL: Comma-separated list of OpenRouter models to try in order
- OPENROUTER_SITE / OPENROUTER_TITLE: Attribution headers sent to OpenRouter
- XAI_API_KEY: Enables the xAI (Grok) provider
- XAI_MODEL: xAI model name
- PROVIDER_TIMEOUT: Per-request timeout for provider calls, in seconds
- MAX_UPLOAD_BYTES: Largest accepted upload
- MAX_IMAGE_SIDE: Longest side of the copy sent to providers (0 = no resize)
- CORS_ORIGINS: Comma-separated list of allowed CORS origins
- LOG_LEVEL: Logging level name
"""

import os
from typing import List, Optional

DEFAULT_OPENROUTER_MODELS = [
    "openai/gpt-4o",
    "google/gemini-1.5-pro",
    "anthropic/claude-3.5-sonnet",
]


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        # OpenRouter (OpenAI-compatible gateway)
        self.openrouter_api_key: Optional[str] = os.getenv("OPENROUTER_API_KEY") or None
        self.openrouter_base_url: str = os.getenv(
            "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"
        )
        self.openrouter_site: str = os.getenv("OPENROUTER_SITE") or "https://v0.app"
        self.openrouter_title: str = os.getenv("OPENROUTER_TITLE") or "AI image detector"

        # An empty override falls back to the default sequence
        override = _split_csv(os.getenv("OPENROUTER_MODEL", ""))
        self.openrouter_models: List[str] = override or list(DEFAULT_OPENROUTER_MODELS)

        # xAI
        self.xai_api_key: Optional[str] = os.getenv("XAI_API_KEY") or None
        self.xai_base_url: str = os.getenv("XAI_BASE_URL", "https://api.x.ai/v1")
        self.xai_model: str = os.getenv("XAI_MODEL", "grok-4")

        self.provider_timeout: float = float(os.getenv("PROVIDER_TIMEOUT", "60"))

        # Upload limits
        self.max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(6 * 1024 * 1024)))
        self.max_image_side: int = int(os.getenv("MAX_IMAGE_SIDE", "2048"))

        self.cors_origins: List[str] = _split_csv(
            os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:8000")
        )

        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def max_upload_mb(self) -> int:
        return self.max_upload_bytes // (1024 * 1024)

    def __repr__(self) -> str:
        return (
            f"Settings("
            f"openrouter={'on' if self.openrouter_api_key else 'off'}, "
            f"openrouter_models={self.openrouter_models!r}, "
            f"xai={'on' if self.xai_api_key else 'off'}, "
            f"xai_model={self.xai_model!r}, "
            f"max_upload_bytes={self.max_upload_bytes})"
        )


# Global settings instance
settings = Settings()
