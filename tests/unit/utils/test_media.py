import base64

import pytest

from anatomy_quiz.entities.content import BlobSegment, TextSegment
from anatomy_quiz.utils.media import (
    DEFAULT_MIME_TYPE,
    guess_mime_type,
    split_data_url,
    to_blob_segment,
    to_part,
)


class TestSplitDataUrl:
    def test_data_url(self) -> None:
        assert split_data_url("data:image/webp;base64,UklGRabc") == ("image/webp", "UklGRabc")

    def test_bare_payload(self) -> None:
        assert split_data_url("/9j/4AAQ") == (None, "/9j/4AAQ")

    def test_marker_without_data_scheme(self) -> None:
        assert split_data_url("junk;base64,AAAA") == (None, "AAAA")


class TestGuessMimeType:
    @pytest.mark.parametrize(
        "payload, expected",
        [
            ("/9j/4AAQSkZJRg", "image/jpeg"),
            ("iVBORw0KGgoAAAA", "image/png"),
            ("R0lGODlhAQAB", "image/gif"),
            ("UklGRiQAAABXRUJQ", "image/webp"),
            ("JVBERi0xLjcK", "application/pdf"),
        ],
    )
    def test_known_signatures(self, payload: str, expected: str) -> None:
        assert guess_mime_type(payload) == expected

    def test_unknown_falls_back_to_default(self) -> None:
        assert guess_mime_type("AAAA") == DEFAULT_MIME_TYPE


class TestToPart:
    def test_blob_segment_from_data_url(self) -> None:
        assert to_blob_segment("data:image/png;base64,iVBORw0KGgo=") == BlobSegment(
            mime_type="image/png", data="iVBORw0KGgo="
        )

    def test_text_part(self) -> None:
        part = to_part(TextSegment("xương đòn"))

        assert part.text == "xương đòn"

    def test_blob_part_is_decoded(self) -> None:
        raw = b"\x89PNG\r\n\x1a\nrest"
        part = to_part(BlobSegment("image/png", base64.b64encode(raw).decode()))

        assert part.inline_data is not None
        assert part.inline_data.data == raw
        assert part.inline_data.mime_type == "image/png"
