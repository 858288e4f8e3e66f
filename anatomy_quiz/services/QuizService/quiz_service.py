"""
Multiple-choice question generation from user-supplied anatomy material.

Theory documents feed the recall/understanding/application levels, clinical
cases feed the clinical level, and sample questions only set the style.
"""

import logging
import uuid
from collections.abc import Mapping, Sequence
from typing import Any

from google.genai import types
from langfuse import observe

from anatomy_quiz.components.content.content_packer import ContentPacker
from anatomy_quiz.components.gemini.gemini_client import GeminiClient
from anatomy_quiz.components.resilience.resilient_caller import ResilientCaller
from anatomy_quiz.entities.content import ContentItem, ContentSource
from anatomy_quiz.entities.errors import ResponseFormatError
from anatomy_quiz.entities.quiz import (
    Difficulty,
    GeneratedMCQResponse,
    MCQQuestion,
)
from anatomy_quiz.services.QuizService.quiz_service_interface import (
    QuizServiceInterface,
)
from anatomy_quiz.utils.json_response import parse_json_object
from anatomy_quiz.utils.media import to_part

# Approximate 1 token = 4 chars; the three budgets stay well under a 1M token window
LIMIT_THEORY_CHARS = 2_400_000
LIMIT_CLINICAL_CHARS = 1_000_000
LIMIT_SAMPLE_CHARS = 200_000

DEFAULT_BUDGETS: dict[str, int] = {
    "theory": LIMIT_THEORY_CHARS,
    "clinical": LIMIT_CLINICAL_CHARS,
    "sample": LIMIT_SAMPLE_CHARS,
}

SOURCE_LABELS: dict[str, str] = {
    "theory": "DỮ LIỆU LÝ THUYẾT",
    "clinical": "DỮ LIỆU LÂM SÀNG",
    "sample": "CÂU HỎI MẪU",
}

SYSTEM_INSTRUCTION = f"""Bạn là một giáo sư Y khoa hàng đầu. Nhiệm vụ của bạn là tạo đề thi trắc nghiệm giải phẫu học chất lượng cao.

QUY TẮC PHÂN TÍCH TÀI LIỆU (TUÂN THỦ TUYỆT ĐỐI):
1. {SOURCE_LABELS["theory"]}: CHỈ được sử dụng để tạo các câu hỏi thuộc mức độ:
   - {Difficulty.REMEMBER.value}
   - {Difficulty.UNDERSTAND.value}
   - {Difficulty.APPLY.value}
   Phân biệt rõ ba mức độ này dựa trên độ sâu tư duy cần thiết để trả lời.
2. {SOURCE_LABELS["clinical"]}: CHỈ được sử dụng để tạo câu hỏi mức độ {Difficulty.CLINICAL.value},
   dưới dạng tình huống lâm sàng có bệnh nhân cụ thể.
3. {SOURCE_LABELS["sample"]}: CHỈ dùng để học văn phong, độ dài và cách đặt phương án nhiễu.
   KHÔNG được sao chép nội dung câu hỏi mẫu.
4. Nếu không có tài liệu cho một mức độ, hãy dùng kiến thức giải phẫu học chuẩn (Gray's Anatomy, Netter).

YÊU CẦU ĐẦU RA:
- Mỗi câu hỏi có đúng 4 phương án, chỉ một phương án đúng.
- "correct_answer" là chỉ số (bắt đầu từ 0) của phương án đúng.
- "explanation" giải thích vì sao đáp án đúng và vì sao các phương án khác sai.
- "difficulty" là một trong các mức độ được yêu cầu, viết chính xác như trên.
- Chỉ trả về JSON, không thêm bất kỳ văn bản nào khác.
"""

MCQ_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "options": {"type": "ARRAY", "items": {"type": "STRING"}},
                    "correct_answer": {"type": "INTEGER"},
                    "explanation": {"type": "STRING"},
                    "difficulty": {
                        "type": "STRING",
                        "enum": [level.value for level in Difficulty],
                    },
                },
                "required": [
                    "question",
                    "options",
                    "correct_answer",
                    "explanation",
                    "difficulty",
                ],
            },
        }
    },
    "required": ["questions"],
}

INVALID_RESPONSE_MESSAGE = (
    "AI trả về dữ liệu không hợp lệ. Có thể tài liệu tải lên quá lớn khiến phản hồi "
    "bị cắt ngang; hãy giảm bớt tài liệu hoặc số lượng câu hỏi rồi thử lại."
)


def _answer_index(value: Any, option_count: int) -> int | None:
    """Accept 0-based ints, numeric strings or option letters ("B")."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        index = value
    elif isinstance(value, str) and value.strip().isdigit():
        index = int(value.strip())
    elif isinstance(value, str) and len(value.strip()) == 1 and value.strip().isalpha():
        index = ord(value.strip().upper()) - ord("A")
    else:
        return None
    return index if 0 <= index < option_count else None


def build_request_text(topic: str, count: int, difficulties: Sequence[Difficulty]) -> str:
    levels = ", ".join(level.value for level in difficulties)
    return (
        f"Chủ đề: {topic}\n"
        f"Số lượng câu hỏi: {count}\n"
        f"Mức độ yêu cầu: {levels}\n"
        "Phân bố đều số câu hỏi giữa các mức độ đã chọn và trả về đúng số lượng yêu cầu."
    )


class QuizService(QuizServiceInterface):
    def __init__(
        self,
        gemini_client: GeminiClient,
        resilient_caller: ResilientCaller,
        logger: logging.Logger,
        content_packer: ContentPacker | None = None,
        budgets: Mapping[str, int] | None = None,
        temperature: float = 0.7,
    ) -> None:
        self.gemini_client = gemini_client
        self.resilient_caller = resilient_caller
        self.logger = logger
        self.content_packer = content_packer or ContentPacker(logger=logger)
        self.budgets = {**DEFAULT_BUDGETS, **(budgets or {})}
        self.temperature = temperature

    def _build_sources(
        self, files: Mapping[str, Sequence[ContentItem]]
    ) -> dict[str, ContentSource]:
        unknown = set(files) - set(SOURCE_LABELS)
        if unknown:
            self.logger.warning("Ignoring unknown file categories: %s", sorted(unknown))

        return {
            category: ContentSource(
                items=files.get(category) or (),
                budget=self.budgets[category],
                label=label,
            )
            for category, label in SOURCE_LABELS.items()
        }

    def _normalize_questions(
        self, raw_questions: list[Any], difficulties: Sequence[Difficulty]
    ) -> list[MCQQuestion]:
        allowed = {level.value for level in difficulties}
        questions: list[MCQQuestion] = []

        for raw in raw_questions:
            if not isinstance(raw, dict):
                continue
            text = str(raw.get("question") or "").strip()
            options = raw.get("options")
            if not text or not isinstance(options, list) or len(options) < 2:
                self.logger.warning("Skipping malformed question: %s", str(raw)[:200])
                continue

            options = [str(option).strip() for option in options]
            correct = _answer_index(raw.get("correct_answer"), len(options))
            if correct is None:
                self.logger.warning("Skipping question without a valid answer: %s", text[:100])
                continue

            difficulty = str(raw.get("difficulty") or "")
            if difficulty not in allowed:
                difficulty = difficulties[0].value

            questions.append(
                {
                    "id": str(uuid.uuid4()),
                    "question": text,
                    "options": options,
                    "correct_answer": correct,
                    "explanation": str(raw.get("explanation") or ""),
                    "difficulty": difficulty,
                }
            )
        return questions

    @observe()
    async def generate_mcq_questions(
        self,
        topic: str,
        count: int,
        difficulties: Sequence[Difficulty | str],
        files: Mapping[str, Sequence[ContentItem]] | None = None,
    ) -> GeneratedMCQResponse:
        """
        Generate multiple-choice questions, raising on any failure.

        Raises:
            ValueError: If count is not positive.
            RetriesExhaustedError: Quota or overload after all retries.
            FatalServiceError: Any other API failure.
            ResponseFormatError: The model output could not be parsed.
        """
        if count < 1:
            raise ValueError("count must be >= 1")
        levels = [Difficulty(level) for level in difficulties] or list(Difficulty)

        segments = self.content_packer.pack(self._build_sources(files or {}))
        parts = [to_part(segment) for segment in segments]
        parts.append(types.Part.from_text(text=build_request_text(topic, count, levels)))

        config = types.GenerateContentConfig(
            system_instruction=SYSTEM_INSTRUCTION,
            temperature=self.temperature,
            response_mime_type="application/json",
            response_schema=MCQ_RESPONSE_SCHEMA,
        )
        contents = [types.Content(role="user", parts=parts)]

        self.logger.info(
            "Generating %d questions on '%s' (%s) with %d packed segments",
            count,
            topic,
            ", ".join(level.name for level in levels),
            len(segments),
        )

        text = await self.resilient_caller.call(
            lambda: self.gemini_client.generate_content(contents, config)
        )

        try:
            data = parse_json_object(text, required_keys=("questions",))
            if not isinstance(data["questions"], list):
                raise ResponseFormatError("'questions' is not a list", raw_text=text)
            questions = self._normalize_questions(data["questions"], levels)
            if not questions:
                raise ResponseFormatError("No usable questions in response", raw_text=text)
        except ResponseFormatError as e:
            self.logger.error("Invalid question payload: %s", e)
            raise ResponseFormatError(INVALID_RESPONSE_MESSAGE, raw_text=text) from e

        if len(questions) != count:
            self.logger.warning("Requested %d questions, model returned %d", count, len(questions))

        return {"questions": questions[:count]}
