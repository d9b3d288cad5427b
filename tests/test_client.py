"""Tests for the command-line upload client."""

import httpx
import pytest

from aidetect.client import (
    ClientError,
    analyze,
    main,
    render_meter,
    render_result,
    validate_upload,
)


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fakejpeg")
    return path


def mock_client(handler) -> httpx.Client:
    return httpx.Client(base_url="http://detector.test", transport=httpx.MockTransport(handler))


class TestValidateUpload:

    def test_accepts_image(self, image_file) -> None:
        assert validate_upload(image_file) == "image/jpeg"

    def test_rejects_non_image(self, tmp_path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(ClientError, match="valid image file"):
            validate_upload(path)

    def test_rejects_large_file(self, tmp_path) -> None:
        path = tmp_path / "huge.png"
        path.write_bytes(b"\x00" * (5 * 1024 * 1024 + 1))
        with pytest.raises(ClientError, match="under 5MB"):
            validate_upload(path)

    def test_rejects_missing_file(self, tmp_path) -> None:
        with pytest.raises(ClientError, match="not found"):
            validate_upload(tmp_path / "gone.png")


class TestAnalyze:

    def test_posts_image_field(self, image_file) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = request.read()
            return httpx.Response(200, json={
                "score": 62, "label": "AI-Generated", "reason": "Odd reflections.", "provider": "fallback",
            })

        result = analyze(image_file, client=mock_client(handler))
        assert result["score"] == 62
        assert seen["path"] == "/api/detect"
        assert b'name="image"' in seen["body"]
        assert b"fakejpeg" in seen["body"]

    def test_error_detail_surfaced(self, image_file) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(413, json={"error": True, "detail": "Image too large (max 6MB)", "status_code": 413})

        with pytest.raises(ClientError, match="Image too large"):
            analyze(image_file, client=mock_client(handler))

    def test_plain_text_error(self, image_file) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad gateway")

        with pytest.raises(ClientError, match="Bad gateway"):
            analyze(image_file, client=mock_client(handler))

    def test_empty_error_body(self, image_file) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        with pytest.raises(ClientError, match="Request failed"):
            analyze(image_file, client=mock_client(handler))


class TestRender:

    def test_meter(self) -> None:
        assert render_meter(50, width=10) == "[#####-----] 50% ~"
        assert render_meter(0, width=4) == "[----] 0% ·"
        assert render_meter(100, width=4) == "[####] 100% !"

    def test_result(self) -> None:
        text = render_result({"score": 40, "reason": "Film grain present.", "provider": "grok-4"})
        lines = text.splitlines()
        assert lines[0] == "Most Likely Human-Captured"
        assert "40%" in lines[1]
        assert lines[2] == "0% human • 100% AI"
        assert lines[3] == "Film grain present."
        assert lines[4] == "(via grok-4)"


class TestMain:

    def test_validation_error_exit_code(self, tmp_path, capsys) -> None:
        path = tmp_path / "doc.pdf"
        path.write_bytes(b"%PDF")
        assert main([str(path)]) == 1
        assert "valid image file" in capsys.readouterr().err


class TestAnalyzeNonJson:

    def test_success_status_with_non_json_body(self, image_file) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>proxy page</html>")

        with pytest.raises(ClientError, match="Request failed"):
            analyze(image_file, client=mock_client(handler))

    def test_main_reports_non_json_body(self, image_file, monkeypatch, capsys) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="ok")

        real_client = httpx.Client
        monkeypatch.setattr(
            "aidetect.client.httpx.Client",
            lambda **kwargs: real_client(base_url=kwargs["base_url"], transport=httpx.MockTransport(handler)),
        )
        assert main([str(image_file)]) == 1
        assert "Request failed" in capsys.readouterr().err
