"""
Image Preprocessing Module for the AI Image Detector.

Helpers for decoding uploads, shrinking the copy sent to vision providers,
and moving image bytes in and out of base64 / data URL form.
"""

import base64
import binascii
import io
import logging
import re
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?:;[\w=.-]+)*?;base64,", re.IGNORECASE)


def load_image_from_bytes(data: bytes) -> Image.Image:
    """
    Load an image from raw bytes.

    Args:
        data: Raw image bytes (JPEG, PNG, etc.)

    Returns:
        Fully decoded PIL Image

    Raises:
        UnidentifiedImageError, OSError: If image cannot be decoded
    """
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def resize_max_side(image: Image.Image, max_side: int) -> Image.Image:
    """
    Resize image to have maximum dimension equal to max_side.

    Maintains aspect ratio. Only downsizes, never upsizes.

    Args:
        image: Input PIL Image
        max_side: Maximum allowed dimension (width or height)

    Returns:
        Resized PIL Image (or original if already smaller)
    """
    width, height = image.size
    max_current = max(width, height)
    if max_current <= max_side:
        return image
    new_size = (
        max(1, width * max_side // max_current),
        max(1, height * max_side // max_current),
    )
    return image.resize(new_size, Image.LANCZOS)


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in ("RGBA", "LA") or (image.mode == "P" and "transparency" in image.info)


def prepare_for_provider(data: bytes, mime_type: str, max_side: int) -> Tuple[bytes, str]:
    """
    Return the bytes and MIME type to send to a vision provider.

    Images larger than `max_side` are re-encoded at a smaller size: JPEG for
    opaque images, PNG when there is an alpha channel. Anything that cannot
    be decoded, or is already small enough, is returned untouched.
    """
    if max_side <= 0:
        return data, mime_type

    try:
        image = load_image_from_bytes(data)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        logger.debug("Upload not decodable by Pillow, sending as-is: %s", exc)
        return data, mime_type

    if max(image.size) <= max_side:
        return data, mime_type

    resized = resize_max_side(image, max_side)
    buffer = io.BytesIO()
    if _has_alpha(resized):
        resized.save(buffer, format="PNG")
        out_mime = "image/png"
    else:
        resized.convert("RGB").save(buffer, format="JPEG", quality=90)
        out_mime = "image/jpeg"

    logger.info(
        "Downscaled upload from %sx%s to %sx%s for provider",
        image.size[0], image.size[1], resized.size[0], resized.size[1],
    )
    return buffer.getvalue(), out_mime


def to_data_url(data: bytes, mime_type: Optional[str]) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type or DEFAULT_MIME_TYPE};base64,{encoded}"


def decode_base64_image(text: str) -> Tuple[bytes, str]:
    """
    Decode a base64 image, with or without a data URL prefix.

    Returns:
        (image bytes, MIME type); the MIME type defaults to image/jpeg when
        no data URL prefix names one.

    Raises:
        ValueError: If the payload is not valid base64
    """
    mime_type = DEFAULT_MIME_TYPE
    payload = text.strip()

    match = _DATA_URL.match(payload)
    if match:
        mime_type = match.group("mime") or DEFAULT_MIME_TYPE
        payload = payload[match.end():]
    elif "," in payload:
        payload = payload.split(",", 1)[1]

    try:
        return base64.b64decode(payload, validate=True), mime_type.lower()
    except binascii.Error as exc:
        raise ValueError(str(exc)) from exc
