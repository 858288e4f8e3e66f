import json
import logging
from collections.abc import Mapping
from typing import Any

from google.genai import types
from langfuse import observe

from anatomy_quiz.components.gemini.gemini_client import GeminiClient
from anatomy_quiz.components.resilience.resilient_caller import ResilientCaller
from anatomy_quiz.entities.errors import RetriesExhaustedError
from anatomy_quiz.entities.quiz import MentorFeedback
from anatomy_quiz.services.MentorService.mentor_service_interface import (
    MentorServiceInterface,
)
from anatomy_quiz.utils.json_response import parse_json_object

MENTOR_PROMPT = """Bạn là người hướng dẫn học tập (mentor) cho sinh viên Y khoa môn Giải phẫu học.
Dưới đây là thống kê kết quả làm bài trắc nghiệm của sinh viên (JSON).

Hãy:
- "analysis": nhận xét tổng quan 3-5 câu, giọng văn khích lệ nhưng thẳng thắn.
- "strengths": các chủ đề/mức độ sinh viên làm tốt.
- "weaknesses": các chủ đề/mức độ cần cải thiện, nêu rõ lý do dựa trên số liệu.
- "roadmap": các bước ôn tập cụ thể, theo thứ tự ưu tiên.

Chỉ trả về JSON.

THỐNG KÊ:
"""

MENTOR_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "analysis": {"type": "STRING"},
        "strengths": {"type": "ARRAY", "items": {"type": "STRING"}},
        "weaknesses": {"type": "ARRAY", "items": {"type": "STRING"}},
        "roadmap": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
    "required": ["analysis", "strengths", "weaknesses", "roadmap"],
}

FALLBACK_ANALYSIS = "Hiện chưa thể phân tích kết quả học tập. Vui lòng thử lại sau."


def default_feedback() -> MentorFeedback:
    return {
        "analysis": FALLBACK_ANALYSIS,
        "strengths": [],
        "weaknesses": [],
        "roadmap": [],
    }


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


class MentorService(MentorServiceInterface):
    def __init__(
        self,
        gemini_client: GeminiClient,
        resilient_caller: ResilientCaller,
        logger: logging.Logger,
        temperature: float = 0.5,
    ) -> None:
        self.gemini_client = gemini_client
        self.resilient_caller = resilient_caller
        self.logger = logger
        self.temperature = temperature

    @observe()
    async def analyze_performance(self, stats: Mapping[str, Any]) -> MentorFeedback:
        """
        Ask the model for feedback on `stats`.

        Returns default_feedback() when the call or parsing fails, so a batch
        of analyses keeps going; exhausted retries are still raised.
        """
        try:
            payload = json.dumps(stats, ensure_ascii=False, indent=2, default=str)
            contents = [
                types.Content(
                    role="user",
                    parts=[types.Part.from_text(text=MENTOR_PROMPT + payload)],
                )
            ]
            config = types.GenerateContentConfig(
                temperature=self.temperature,
                response_mime_type="application/json",
                response_schema=MENTOR_RESPONSE_SCHEMA,
            )

            text = await self.resilient_caller.call(
                lambda: self.gemini_client.generate_content(contents, config)
            )
            data = parse_json_object(text, required_keys=("analysis",))

            return {
                "analysis": str(data.get("analysis") or FALLBACK_ANALYSIS),
                "strengths": _string_list(data.get("strengths")),
                "weaknesses": _string_list(data.get("weaknesses")),
                "roadmap": _string_list(data.get("roadmap")),
            }

        except RetriesExhaustedError:
            raise
        except Exception as e:
            self.logger.error("Mentor analysis failed: %s", e, exc_info=True)
            return default_feedback()
