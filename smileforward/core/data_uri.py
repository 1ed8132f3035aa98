"""Helpers for base64 data URIs exchanged with the widget."""

import base64
import binascii
import re

_DATA_URI_PREFIX = re.compile(r"^data:([a-zA-Z0-9.+-]+/[a-zA-Z0-9.+-]+);base64,")

DEFAULT_MIME_TYPE = "image/jpeg"


def strip_data_uri_prefix(value: str) -> str:
    """Remove a ``data:<mime>;base64,`` prefix if present."""
    return _DATA_URI_PREFIX.sub("", value, count=1)


def data_uri_mime_type(value: str, default: str = DEFAULT_MIME_TYPE) -> str:
    """Return the MIME type declared by a data URI, or ``default``."""
    match = _DATA_URI_PREFIX.match(value)
    return match.group(1) if match else default


def decode_data_uri(value: str) -> tuple[bytes, str]:
    """Decode a data URI (or bare base64 string) into bytes and MIME type.

    Raises:
        ValueError: If the payload is empty or not valid base64
    """
    if not value:
        raise ValueError("Empty image payload")
    mime_type = data_uri_mime_type(value)
    try:
        data = base64.b64decode(strip_data_uri_prefix(value), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image payload: {e}") from e
    if not data:
        raise ValueError("Empty image payload")
    return data, mime_type


def to_data_uri(data: bytes, mime_type: str) -> str:
    """Encode bytes as a base64 data URI."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"
