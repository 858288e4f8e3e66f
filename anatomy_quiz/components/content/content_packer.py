"""
Packs user documents into the ordered parts of a Gemini request.

Each source category (theory, clinical cases, sample questions) is packed
under its own character budget so a huge textbook cannot crowd the sample
questions out of the context window.
"""

import logging
from collections.abc import Mapping

from anatomy_quiz.entities.content import (
    ContentSource,
    PackedSegment,
    TextSegment,
)
from anatomy_quiz.utils.media import to_blob_segment

# Nominal context cost of one binary page. Attachments are not measured,
# this is a fixed approximation of an image/PDF page worth of text.
BINARY_ATTACHMENT_CHAR_COST = 50_000

TRUNCATION_SUFFIX = "\n...[Nội dung đã bị cắt bớt do quá dài]"


def begin_marker(label: str) -> str:
    return f"\n=== BẮT ĐẦU {label} ===\n"


def end_marker(label: str) -> str:
    return f"\n=== KẾT THÚC {label} ===\n"


def omitted_marker(label: str) -> str:
    return f"\n[Các tài liệu còn lại của {label} đã bị lược bỏ do vượt giới hạn dung lượng]\n"


class ContentPacker:
    def __init__(
        self,
        binary_cost: int = BINARY_ATTACHMENT_CHAR_COST,
        logger: logging.Logger | None = None,
    ) -> None:
        self.binary_cost = binary_cost
        self.logger = logger or logging.getLogger("content_packer")

    def pack(self, sources: Mapping[str, ContentSource]) -> list[PackedSegment]:
        """
        Build the segment list for all categories, in mapping order.

        Categories without items are skipped. Within a category, items keep
        their order and only a suffix is ever dropped.
        """
        segments: list[PackedSegment] = []
        for category, source in sources.items():
            if not source.items:
                continue
            segments.extend(self._pack_source(category, source))
        return segments

    def _pack_source(self, category: str, source: ContentSource) -> list[PackedSegment]:
        if source.budget < 0:
            raise ValueError(f"Budget for '{category}' must be >= 0")

        segments: list[PackedSegment] = [TextSegment(begin_marker(source.label))]
        used = 0
        packed_items = 0

        for item in source.items:
            if used >= source.budget:
                segments.append(TextSegment(omitted_marker(source.label)))
                self.logger.warning(
                    "Budget of %d chars reached for '%s', dropped %d of %d items",
                    source.budget,
                    category,
                    len(source.items) - packed_items,
                    len(source.items),
                )
                break

            if item.is_text:
                remaining = source.budget - used
                text = item.content
                if len(text) > remaining:
                    text = text[:remaining]
                    segments.append(TextSegment(text + TRUNCATION_SUFFIX))
                    self.logger.info(
                        "Truncated '%s' item %d from %d to %d chars",
                        category,
                        packed_items + 1,
                        len(item.content),
                        remaining,
                    )
                else:
                    segments.append(TextSegment(text))
                used += len(text)
            else:
                segments.append(to_blob_segment(item.content))
                used += self.binary_cost

            packed_items += 1

        segments.append(TextSegment(end_marker(source.label)))
        self.logger.debug(
            "Packed '%s': %d items, %d/%d chars", category, packed_items, used, source.budget
        )
        return segments
