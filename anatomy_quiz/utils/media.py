"""
Helpers for base64 attachments coming from the browser.

Uploads arrive either as bare base64 or as data URLs
(``data:image/png;base64,iVBOR...``); Gemini wants raw bytes plus a MIME type.
"""

import base64

from google.genai import types

from anatomy_quiz.entities.content import BlobSegment, PackedSegment, TextSegment

DEFAULT_MIME_TYPE = "image/jpeg"

# Leading characters of the base64 encoding of each format's magic number
_BASE64_SIGNATURES: tuple[tuple[str, str], ...] = (
    ("/9j/", "image/jpeg"),
    ("iVBORw0KGgo", "image/png"),
    ("R0lGOD", "image/gif"),
    ("UklGR", "image/webp"),
    ("JVBERi0", "application/pdf"),
)


def split_data_url(content: str) -> tuple[str | None, str]:
    """
    Split a data URL into (mime_type, payload).

    Returns (None, content) when there is no ``base64,`` marker.
    """
    marker = "base64,"
    index = content.find(marker)
    if index == -1:
        return None, content

    header = content[:index]
    mime_type = None
    if header.startswith("data:"):
        mime_type = header[len("data:") :].rstrip(";") or None
    return mime_type, content[index + len(marker) :]


def guess_mime_type(payload: str) -> str:
    for prefix, mime_type in _BASE64_SIGNATURES:
        if payload.startswith(prefix):
            return mime_type
    return DEFAULT_MIME_TYPE


def to_blob_segment(content: str) -> BlobSegment:
    mime_type, payload = split_data_url(content)
    return BlobSegment(mime_type=mime_type or guess_mime_type(payload), data=payload)


def to_part(segment: PackedSegment) -> types.Part:
    """Convert a packed segment into a Gemini content part."""
    if isinstance(segment, TextSegment):
        return types.Part.from_text(text=segment.text)
    return types.Part.from_bytes(
        data=base64.b64decode(segment.data), mime_type=segment.mime_type
    )
