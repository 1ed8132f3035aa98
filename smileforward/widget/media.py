"""Photo preprocessing before upload."""

import io
import logging

from PIL import Image, ImageOps, UnidentifiedImageError

from smileforward.core.data_uri import data_uri_mime_type, strip_data_uri_prefix, to_data_uri

logger = logging.getLogger(__name__)

__all__ = [
    "MediaError",
    "data_uri_mime_type",
    "is_image_type",
    "preprocess_image",
    "strip_data_uri_prefix",
]


class MediaError(ValueError):
    """Raised when a photo cannot be decoded."""
    pass


def is_image_type(content_type: str | None) -> bool:
    """Whether a declared content type is an image type."""
    return bool(content_type) and content_type.lower().startswith("image/")


def preprocess_image(
    data: bytes,
    content_type: str,
    max_edge: int = 1024,
    quality: int = 85,
) -> str:
    """Downsample and re-encode a photo as a JPEG data URI.

    EXIF orientation is applied and the longest edge is bounded by
    ``max_edge``. Smaller images are never upscaled.

    Raises:
        MediaError: If the content type is not an image or the bytes
            cannot be decoded
    """
    if not is_image_type(content_type):
        raise MediaError(f"Unsupported file type: {content_type or 'unknown'}")
    if not data:
        raise MediaError("Empty image")

    try:
        img = Image.open(io.BytesIO(data))
        img = ImageOps.exif_transpose(img)
        img = img.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise MediaError(f"Could not read image: {e}") from e

    original_size = img.size
    img.thumbnail((max_edge, max_edge), Image.LANCZOS)

    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality, optimize=True)
    logger.debug(f"Preprocessed image {original_size} -> {img.size}, {buf.tell()} bytes")
    return to_data_uri(buf.getvalue(), "image/jpeg")
