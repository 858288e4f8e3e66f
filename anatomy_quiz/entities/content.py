from dataclasses import dataclass
from typing import Sequence, Union


@dataclass(frozen=True)
class ContentItem:
    """
    One user-supplied document or page.

    `content` is plain text when `is_text` is True, otherwise a base64 payload
    that may still carry its data URL prefix (``data:image/png;base64,...``).
    """

    content: str
    is_text: bool


@dataclass(frozen=True)
class ContentSource:
    """A labelled category of documents packed under its own character budget."""

    items: Sequence[ContentItem]
    budget: int
    label: str


@dataclass(frozen=True)
class TextSegment:
    text: str


@dataclass(frozen=True)
class BlobSegment:
    """Binary attachment, `data` is the base64 payload without any data URL prefix."""

    mime_type: str
    data: str


PackedSegment = Union[TextSegment, BlobSegment]
