"""
Vision check for anatomy practical ("station") images.

A station is a photo of a specimen, model or atlas plate with pins or
numbered labels. Valid images get one identification question per label.
"""

import logging
import uuid
from typing import Any

from google.genai import types
from langfuse import observe

from anatomy_quiz.components.gemini.gemini_client import GeminiClient
from anatomy_quiz.components.resilience.resilient_caller import ResilientCaller
from anatomy_quiz.entities.errors import RetriesExhaustedError
from anatomy_quiz.entities.quiz import StationQuestion, StationResult
from anatomy_quiz.services.StationService.station_service_interface import (
    StationServiceInterface,
)
from anatomy_quiz.utils.json_response import parse_json_object
from anatomy_quiz.utils.media import to_blob_segment, to_part

STATION_PROMPT = """Bạn là giảng viên giải phẫu học đang chấm thi chạy trạm.

Hãy xem hình ảnh và xác định:
1. Đây có phải là hình trạm giải phẫu hợp lệ không (xác ướp, mô hình, tiêu bản hoặc hình atlas
   có ghim hoặc số đánh dấu các cấu trúc)? Ảnh chụp mờ, ảnh không liên quan giải phẫu,
   ảnh chỉ có chữ đều KHÔNG hợp lệ.
2. Nếu hợp lệ, tạo một câu hỏi cho mỗi ghim/số được đánh dấu:
   - "question": ví dụ "Cấu trúc được đánh dấu số 1 là gì?"
   - "answer": tên cấu trúc bằng tiếng Việt, kèm tên Latin trong ngoặc
   - "explanation": mốc nhận diện và liên quan giải phẫu quan trọng
3. Nếu không hợp lệ, trả về "is_valid": false và danh sách câu hỏi rỗng.

Chỉ trả về JSON."""

STATION_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "is_valid": {"type": "BOOLEAN"},
        "questions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "question": {"type": "STRING"},
                    "answer": {"type": "STRING"},
                    "explanation": {"type": "STRING"},
                },
                "required": ["question", "answer"],
            },
        },
    },
    "required": ["is_valid"],
}


def invalid_station() -> StationResult:
    return {"is_valid": False, "questions": []}


class StationService(StationServiceInterface):
    def __init__(
        self,
        gemini_client: GeminiClient,
        resilient_caller: ResilientCaller,
        logger: logging.Logger,
        temperature: float = 0.2,
    ) -> None:
        self.gemini_client = gemini_client
        self.resilient_caller = resilient_caller
        self.logger = logger
        self.temperature = temperature

    @staticmethod
    def _to_questions(raw_questions: Any) -> list[StationQuestion]:
        if not isinstance(raw_questions, list):
            return []

        questions: list[StationQuestion] = []
        for raw in raw_questions:
            if not isinstance(raw, dict):
                continue
            question = str(raw.get("question") or "").strip()
            answer = str(raw.get("answer") or "").strip()
            if not question or not answer:
                continue
            questions.append(
                {
                    "id": str(uuid.uuid4()),
                    "question": question,
                    "answer": answer,
                    "explanation": str(raw.get("explanation") or ""),
                }
            )
        return questions

    @observe()
    async def check_station_image(
        self, image: str, topic: str | None = None
    ) -> StationResult:
        if not image or not image.strip():
            self.logger.warning("Empty station image provided")
            return invalid_station()

        try:
            prompt = STATION_PROMPT
            if topic:
                prompt += f"\n\nChủ đề của trạm: {topic}"

            contents = [
                types.Content(
                    role="user",
                    parts=[
                        to_part(to_blob_segment(image)),
                        types.Part.from_text(text=prompt),
                    ],
                )
            ]
            config = types.GenerateContentConfig(
                temperature=self.temperature,
                response_mime_type="application/json",
                response_schema=STATION_RESPONSE_SCHEMA,
            )

            text = await self.resilient_caller.call(
                lambda: self.gemini_client.generate_content(
                    contents,
                    config,
                    model_name=self.gemini_client.vision_model_name,
                )
            )

            data = parse_json_object(text, required_keys=("is_valid",))
            questions = self._to_questions(data.get("questions"))
            is_valid = data.get("is_valid") is True and bool(questions)

            self.logger.info(
                "Station check finished: valid=%s, %d questions", is_valid, len(questions)
            )
            return {"is_valid": is_valid, "questions": questions if is_valid else []}

        except RetriesExhaustedError:
            raise
        except Exception as e:
            self.logger.error("Station check failed: %s", e, exc_info=True)
            return invalid_station()
