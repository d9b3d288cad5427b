"""Tests for the provider fallback chain."""

import io
from typing import List, Optional, Tuple

from openai import OpenAIError
from PIL import Image

from aidetect.detector import Detector
from aidetect.heuristic import heuristic_score
from aidetect.providers import ProviderVerdict
from aidetect.schemas import ModelVerdict


class RecordingProvider:

    def __init__(self, name: str, error: Optional[Exception] = None, score: float = 90) -> None:
        self.name = name
        self.error = error
        self.score = score
        self.calls: List[Tuple[bytes, Optional[str]]] = []

    def analyze(self, data: bytes, mime_type: Optional[str]) -> ProviderVerdict:
        self.calls.append((data, mime_type))
        if self.error is not None:
            raise self.error
        return ProviderVerdict(ModelVerdict(score=self.score, reason="Synthetic look."), self.name)


class TestDetector:

    def test_no_providers_uses_heuristic(self) -> None:
        detector = Detector([])
        assert detector.fallback_only
        assert detector.detect(b"abc", "image/png") == heuristic_score(b"abc")

    def test_first_success_wins(self) -> None:
        first = RecordingProvider("one", score=49.5)
        second = RecordingProvider("two")
        result = Detector([first, second]).detect(b"abc", "image/png")
        assert result.provider == "one"
        assert result.score == 50
        assert result.label == "Uncertain"
        assert second.calls == []

    def test_sdk_error_moves_to_next_provider(self) -> None:
        first = RecordingProvider("one", error=OpenAIError("auth"))
        second = RecordingProvider("two")
        result = Detector([first, second]).detect(b"abc", "image/png")
        assert result.provider == "two"

    def test_missing_mime_defaults_to_jpeg(self) -> None:
        provider = RecordingProvider("one")
        Detector([provider]).detect(b"abc", None)
        assert provider.calls == [(b"abc", "image/jpeg")]

    def test_provider_gets_downscaled_copy_heuristic_gets_original(self) -> None:
        buffer = io.BytesIO()
        Image.new("RGB", (1600, 800), (200, 10, 10)).save(buffer, format="PNG")
        original = buffer.getvalue()

        provider = RecordingProvider("one", error=OpenAIError("down"))
        result = Detector([provider], max_image_side=400).detect(original, "image/png")

        sent, mime = provider.calls[0]
        assert mime == "image/jpeg"
        assert Image.open(io.BytesIO(sent)).size == (400, 200)
        assert result == heuristic_score(original)

    def test_decompression_bomb_sends_original_bytes(self, monkeypatch) -> None:
        """Images past Pillow's pixel limit skip downscaling instead of failing."""
        buffer = io.BytesIO()
        Image.new("L", (400, 400)).save(buffer, format="PNG")
        original = buffer.getvalue()
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10_000)

        provider = RecordingProvider("one", score=70)
        result = Detector([provider], max_image_side=100).detect(original, "image/png")

        assert provider.calls == [(original, "image/png")]
        assert result.provider == "one"
        assert result.score == 70

    def test_preprocessing_error_never_bypasses_providers(self, monkeypatch) -> None:
        def broken(data, mime_type, max_side):
            raise RuntimeError("resize failed")

        monkeypatch.setattr("aidetect.detector.prepare_for_provider", broken)
        provider = RecordingProvider("one", error=OpenAIError("down"))
        result = Detector([provider], max_image_side=100).detect(b"abc", "image/png")

        assert provider.calls == [(b"abc", "image/png")]
        assert result == heuristic_score(b"abc")
