"""Content-type detection from file names."""

from __future__ import annotations

import mimetypes

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_mimetypes = mimetypes.MimeTypes()


def detect(filename: str) -> str:
    """Guess a MIME type from a file name's extension. Never reads content."""
    content_type, _encoding = _mimetypes.guess_type(filename, strict=False)
    return content_type or DEFAULT_CONTENT_TYPE
