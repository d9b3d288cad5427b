"""
Command-line client for the detection service.

Usage:
    aidetect-client photo.jpg --url http://localhost:8000

Validates the file locally (image type, at most 5MB), uploads it to
/api/detect and prints the verdict, a score meter and the reason.
"""

import argparse
import json
import mimetypes
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from aidetect.scoring import clamp_score, display_verdict, meter_tone

MAX_SIZE_BYTES = 5 * 1024 * 1024
DEFAULT_URL = "http://localhost:8000"
METER_WIDTH = 20

_TONE_MARKERS = {"neutral": "·", "amber": "~", "green": "!"}


class ClientError(Exception):
    """Validation or request failure shown to the user."""


def validate_upload(path: Path) -> str:
    """
    Check that `path` looks like an acceptable image.

    Returns:
        The guessed MIME type

    Raises:
        ClientError: If the file is missing, not an image, or too large
    """
    if not path.is_file():
        raise ClientError(f"File not found: {path}")
    mime_type, _ = mimetypes.guess_type(path.name)
    if not mime_type or not mime_type.startswith("image/"):
        raise ClientError("Please upload a valid image file.")
    if path.stat().st_size > MAX_SIZE_BYTES:
        raise ClientError("Image is too large. Please select a file under 5MB.")
    return mime_type


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return response.text or "Request failed"


def analyze(
    path: Path,
    base_url: str = DEFAULT_URL,
    client: Optional[httpx.Client] = None,
    timeout: float = 120.0,
) -> Dict[str, Any]:
    """Validate and upload an image; return the decoded JSON response."""
    mime_type = validate_upload(path)
    owns_client = client is None
    http = client or httpx.Client(base_url=base_url, timeout=timeout)
    try:
        with path.open("rb") as handle:
            response = http.post(
                "/api/detect",
                files={"image": (path.name, handle, mime_type)},
            )
    except httpx.HTTPError as exc:
        raise ClientError(f"Request failed: {exc}") from exc
    finally:
        if owns_client:
            http.close()

    if response.is_error:
        raise ClientError(_error_message(response))
    try:
        return response.json()
    except ValueError as exc:
        raise ClientError("Request failed") from exc


def render_meter(score: int, width: int = METER_WIDTH) -> str:
    filled = round(score / 100 * width)
    marker = _TONE_MARKERS[meter_tone(score)]
    return f"[{'#' * filled}{'-' * (width - filled)}] {score}% {marker}"


def render_result(response: Dict[str, Any]) -> str:
    score = clamp_score(response.get("score"))
    lines: List[str] = [
        display_verdict(score),
        render_meter(score),
        "0% human • 100% AI",
        str(response.get("reason", "")),
    ]
    provider = response.get("provider")
    if provider:
        lines.append(f"(via {provider})")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aidetect-client",
        description="Check whether an image is AI-generated or human-captured.",
    )
    parser.add_argument("image", type=Path, help="Path to the image file")
    parser.add_argument("--url", default=DEFAULT_URL, help="Detection service base URL")
    parser.add_argument("--json", action="store_true", help="Print the raw JSON response")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        result = analyze(args.image, base_url=args.url)
    except ClientError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result, indent=2, ensure_ascii=False))
    else:
        print(render_result(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
