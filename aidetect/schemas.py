"""
Pydantic Schemas for the AI Image Detector API.

These schemas define the request/response models for the FastAPI endpoints
and the constrained JSON verdict that vision providers must return.
"""

import math
from typing import Any, List, Literal

from pydantic import BaseModel, Field, field_validator

Label = Literal["AI-Generated", "Human-Captured", "Uncertain"]


class ModelVerdict(BaseModel):
    """Verdict object a vision model is asked to produce."""

    score: float = Field(
        ge=0.0,
        le=100.0,
        allow_inf_nan=False,
        description="0-100, higher means more likely AI-generated"
    )
    reason: str = Field(
        min_length=3,
        max_length=200,
        description="Concise justification for the score"
    )

    @field_validator("score", mode="before")
    @classmethod
    def _coerce_numeric_string(cls, value: Any) -> Any:
        # Models sometimes quote the number
        if isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                return value
            if math.isfinite(number):
                return number
        return value


class DetectResponse(BaseModel):
    """
    Detection result returned to the client.

    The score is an integer percentage where higher means more likely
    AI-generated; the label is derived from the score.
    """

    score: int = Field(
        ge=0,
        le=100,
        description="Likelihood (0-100) that the image is AI-generated"
    )
    label: Label = Field(
        description="Three-way verdict derived from the score"
    )
    reason: str = Field(
        description="Short explanation, at most 200 characters"
    )
    provider: str = Field(
        description="'openrouter:<model>', the xAI model name, or 'fallback'"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "score": 82,
                "label": "AI-Generated",
                "reason": "Overly smooth skin texture and inconsistent specular highlights.",
                "provider": "openrouter:openai/gpt-4o"
            }
        }
    }


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(default="ok", description="Service status")
    providers: List[str] = Field(
        default_factory=list,
        description="Configured providers, in the order they are tried"
    )
    fallback_only: bool = Field(
        description="True when no provider is configured and only the heuristic runs"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "status": "ok",
                "providers": ["openrouter", "xai"],
                "fallback_only": False
            }
        }
    }


class ErrorResponse(BaseModel):
    """Error response model for API errors."""

    error: bool = Field(
        default=True,
        description="Indicates this is an error response"
    )
    detail: str = Field(
        description="Human-readable error message"
    )
    status_code: int = Field(
        description="HTTP status code"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": True,
                "detail": "Invalid file type",
                "status_code": 400
            }
        }
    }


class Base64ImageRequest(BaseModel):
    """Request model for base64-encoded image detection."""

    image_base64: str = Field(
        description="Base64-encoded image data (with or without data URL prefix)"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "image_base64": "data:image/jpeg;base64,/9j/4AAQSkZJRgABAQAAAQABAAD..."
            }
        }
    }
