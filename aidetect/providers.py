"""
Vision provider clients.

Both supported providers speak the OpenAI chat-completions protocol, so a
single `openai.OpenAI` client per provider is enough; only the base URL,
headers and model list differ.

Each model gets a structured attempt (JSON response format, validated
against `ModelVerdict`). When that fails and the provider allows it, a
second plain-text attempt asks for bare JSON and digs it out of whatever
the model returns.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from aidetect.config import Settings
from aidetect.extraction import extract_json_object
from aidetect.preprocess import to_data_url
from aidetect.schemas import ModelVerdict

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert forensic image analyst. "
    "Detect whether an image is AI-generated or human-captured. "
    "Return only valid JSON matching the provided schema. "
    "Use conservative confidence. Score is 0-100 where higher means more likely AI-generated."
)

STRUCTURED_INSTRUCTION = (
    "Analyze this image for likelihood of AI-generation. "
    "Consider sensor noise, compression artifacts, frequency patterns, and metadata cues. "
    "Return a score (0-100) and a concise reason. "
    'Respond with a JSON object of the form {"score": <number>, "reason": "<string>"}.'
)

TEXT_INSTRUCTION = (
    "Analyze this image for likelihood of AI-generation. "
    "Consider sensor noise, compression artifacts, frequency patterns, and metadata cues. "
    "Return ONLY JSON with keys: score (0-100 number), reason (string <= 200 chars). "
    "Do not include any extra text or explanations."
)


class ProviderError(Exception):
    """Raised when every model of a provider failed to produce a verdict."""


class ProviderVerdict:
    """A validated verdict together with the tag of the model that produced it."""

    def __init__(self, verdict: ModelVerdict, provider: str) -> None:
        self.score = verdict.score
        self.reason = verdict.reason
        self.provider = provider

    def __repr__(self) -> str:
        return f"ProviderVerdict(score={self.score!r}, provider={self.provider!r})"


def build_messages(instruction: str, image_url: str) -> List[Dict[str, Any]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": instruction},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        },
    ]


def _message_text(completion: Any) -> str:
    if not completion.choices:
        return ""
    return completion.choices[0].message.content or ""


class ChatVisionProvider:
    """
    A provider reachable through an OpenAI-compatible endpoint.

    Subclasses set `name`, the candidate models, and whether the plain-text
    retry is used.
    """

    name = "openai-compatible"
    text_fallback = True
    structured_max_tokens: Optional[int] = 150
    text_max_tokens: Optional[int] = 300
    temperature: Optional[float] = 0

    def __init__(self, client: OpenAI, models: Sequence[str]) -> None:
        if not models:
            raise ValueError(f"{self.name}: at least one model is required")
        self.client = client
        self.models = list(models)

    def provider_tag(self, model: str) -> str:
        return model

    def analyze(self, data: bytes, mime_type: Optional[str]) -> ProviderVerdict:
        """
        Try each candidate model in order and return the first valid verdict.

        Raises:
            ProviderError: If every model failed
        """
        image_url = to_data_url(data, mime_type)
        for model in self.models:
            try:
                verdict = self._structured(model, image_url)
            except (OpenAIError, ValueError) as exc:
                if not self.text_fallback:
                    logger.error("%s model %s failed: %s", self.name, model, exc)
                    continue
                logger.info(
                    "%s model %s structured JSON failed, retrying with text parse: %s",
                    self.name, model, exc,
                )
                try:
                    verdict = self._text(model, image_url)
                except (OpenAIError, ValueError) as exc2:
                    logger.error(
                        "%s model %s text parse failed, trying next: %s", self.name, model, exc2
                    )
                    continue
            return ProviderVerdict(verdict, self.provider_tag(model))

        raise ProviderError(f"All {self.name} models failed")

    def _create(self, model: str, messages: List[Dict[str, Any]], max_tokens: Optional[int],
                **extra: Any) -> str:
        kwargs: Dict[str, Any] = {"model": model, "messages": messages}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        kwargs.update(extra)
        completion = self.client.chat.completions.create(**kwargs)
        return _message_text(completion)

    def _structured(self, model: str, image_url: str) -> ModelVerdict:
        content = self._create(
            model,
            build_messages(STRUCTURED_INSTRUCTION, image_url),
            self.structured_max_tokens,
            response_format={"type": "json_object"},
        )
        # json.JSONDecodeError and ValidationError are both ValueErrors
        return ModelVerdict.model_validate(json.loads(content))

    def _text(self, model: str, image_url: str) -> ModelVerdict:
        content = self._create(
            model,
            build_messages(TEXT_INSTRUCTION, image_url),
            self.text_max_tokens,
        )
        parsed = extract_json_object(content)
        try:
            return ModelVerdict.model_validate(parsed)
        except ValidationError as exc:
            raise ValueError(f"Parsed JSON did not match schema: {exc.error_count()} error(s)") from exc


class OpenRouterProvider(ChatVisionProvider):
    """OpenRouter gateway: several candidate models, text retry enabled."""

    name = "openrouter"

    def provider_tag(self, model: str) -> str:
        return f"openrouter:{model}"

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenRouterProvider":
        client = OpenAI(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            timeout=settings.provider_timeout,
            default_headers={
                "HTTP-Referer": settings.openrouter_site,
                "X-Title": settings.openrouter_title,
            },
        )
        return cls(client, settings.openrouter_models)


class XAIProvider(ChatVisionProvider):
    """xAI Grok: one model, structured attempt only, provider defaults for sampling and length."""

    name = "xai"
    text_fallback = False
    temperature = None
    structured_max_tokens = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "XAIProvider":
        client = OpenAI(
            api_key=settings.xai_api_key,
            base_url=settings.xai_base_url,
            timeout=settings.provider_timeout,
        )
        return cls(client, [settings.xai_model])


def build_providers(settings: Settings) -> List[ChatVisionProvider]:
    """Configured providers in the order they are tried."""
    providers: List[ChatVisionProvider] = []
    if settings.openrouter_api_key:
        providers.append(OpenRouterProvider.from_settings(settings))
    if settings.xai_api_key:
        providers.append(XAIProvider.from_settings(settings))
    return providers
