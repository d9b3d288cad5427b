"""
Detection entry point: the provider fallback chain.

Providers are tried in order; the first one that yields a verdict wins.
When none is configured, or all of them fail, the deterministic heuristic
answers instead so the endpoint always returns a result.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from openai import OpenAIError

from aidetect.config import Settings
from aidetect.heuristic import heuristic_score
from aidetect.preprocess import DEFAULT_MIME_TYPE, prepare_for_provider
from aidetect.providers import ChatVisionProvider, ProviderError, build_providers
from aidetect.schemas import DetectResponse
from aidetect.scoring import normalize

logger = logging.getLogger(__name__)


class Detector:
    """Runs an upload through the configured providers, then the heuristic."""

    def __init__(
        self,
        providers: Sequence[ChatVisionProvider],
        max_image_side: int = 0,
    ) -> None:
        self.providers = list(providers)
        self.max_image_side = max_image_side

    @classmethod
    def from_settings(cls, settings: Settings) -> "Detector":
        return cls(build_providers(settings), max_image_side=settings.max_image_side)

    @property
    def provider_names(self) -> List[str]:
        return [provider.name for provider in self.providers]

    @property
    def fallback_only(self) -> bool:
        return not self.providers

    def detect(self, data: bytes, mime_type: Optional[str] = None) -> DetectResponse:
        """
        Score an image.

        Args:
            data: Raw upload bytes
            mime_type: Upload content type, forwarded to the provider

        Returns:
            DetectResponse from the first successful provider, or from the
            heuristic when no provider succeeds
        """
        if self.providers:
            payload, payload_mime = self._provider_payload(data, mime_type or DEFAULT_MIME_TYPE)
            for provider in self.providers:
                try:
                    verdict = provider.analyze(payload, payload_mime)
                except (ProviderError, OpenAIError) as exc:
                    logger.error("Provider %s failed: %s", provider.name, exc)
                    continue
                return normalize(verdict.score, verdict.reason, verdict.provider)

            logger.warning("All providers failed, falling back to heuristic")

        return heuristic_score(data)

    def _provider_payload(self, data: bytes, mime_type: str) -> Tuple[bytes, str]:
        # Downscaling is best effort; the original bytes are always usable
        try:
            return prepare_for_provider(data, mime_type, self.max_image_side)
        except Exception as exc:
            logger.warning("Preprocessing failed, sending original upload: %s", exc, exc_info=exc)
            return data, mime_type
