"""
Conversational anatomy tutor.

Replays the previous turns (text plus optional image) as Gemini contents and
sends the new message; failures other than exhausted retries turn into an
apology so the chat UI never breaks.
"""

import logging

from google.genai import types
from langfuse import observe

from anatomy_quiz.components.gemini.gemini_client import GeminiClient
from anatomy_quiz.components.resilience.resilient_caller import ResilientCaller
from anatomy_quiz.entities.errors import RetriesExhaustedError
from anatomy_quiz.entities.quiz import ChatTurn
from anatomy_quiz.services.TutorChatService.tutor_chat_service_interface import (
    TutorChatServiceInterface,
)
from anatomy_quiz.utils.media import to_blob_segment, to_part

TUTOR_SYSTEM_INSTRUCTION = """Bạn là trợ giảng môn Giải phẫu học cho sinh viên Y khoa Việt Nam.
- Trả lời bằng tiếng Việt, kèm thuật ngữ Latin khi nêu tên cấu trúc.
- Giải thích ngắn gọn, có cấu trúc, liên hệ lâm sàng khi phù hợp.
- Nếu sinh viên gửi hình, mô tả những gì quan sát được trước khi trả lời.
- Nếu câu hỏi nằm ngoài phạm vi Y khoa, lịch sự từ chối."""

FALLBACK_REPLY = "Xin lỗi, mình chưa thể trả lời lúc này. Bạn thử hỏi lại sau nhé."
EMPTY_MESSAGE_NOTE = "[Ghi chú hệ thống: sinh viên gửi tin nhắn trống]"


class TutorChatService(TutorChatServiceInterface):
    def __init__(
        self,
        gemini_client: GeminiClient,
        resilient_caller: ResilientCaller,
        logger: logging.Logger,
        max_history_turns: int = 20,
        temperature: float = 0.7,
    ) -> None:
        """
        Args:
            gemini_client: Shared Gemini client
            resilient_caller: Retry wrapper for the model call
            logger: Logger instance
            max_history_turns: Only the most recent turns are replayed
            temperature: Model temperature
        """
        self.gemini_client = gemini_client
        self.resilient_caller = resilient_caller
        self.logger = logger
        self.max_history_turns = max_history_turns
        self.temperature = temperature

    def _build_parts(self, text: str, image: str | None) -> list[types.Part]:
        parts = [types.Part.from_text(text=text)] if text else []
        if image:
            try:
                parts.append(to_part(to_blob_segment(image)))
            except Exception as e:
                self.logger.warning("Failed to decode attachment: %s", e)
        return parts

    def _build_contents(
        self, history: list[ChatTurn], message: str, image: str | None
    ) -> list[types.Content]:
        contents: list[types.Content] = []
        recent = history[-self.max_history_turns :] if self.max_history_turns else []

        for turn in recent:
            role = "model" if turn.get("role") == "model" else "user"
            parts = self._build_parts(turn.get("text", ""), turn.get("image"))
            if parts:
                contents.append(types.Content(role=role, parts=parts))

        parts = self._build_parts(message.strip(), image)
        if not parts:
            self.logger.warning("Chat message has no text or valid image")
            parts = [types.Part.from_text(text=EMPTY_MESSAGE_NOTE)]
        contents.append(types.Content(role="user", parts=parts))
        return contents

    @observe()
    async def chat(
        self,
        history: list[ChatTurn],
        message: str,
        image: str | None = None,
    ) -> str:
        try:
            contents = self._build_contents(history, message, image)
            config = types.GenerateContentConfig(
                system_instruction=TUTOR_SYSTEM_INSTRUCTION,
                temperature=self.temperature,
            )

            reply = await self.resilient_caller.call(
                lambda: self.gemini_client.generate_content(contents, config)
            )
            if not reply.strip():
                self.logger.warning("Tutor returned an empty reply")
                return FALLBACK_REPLY
            return reply.strip()

        except RetriesExhaustedError:
            raise
        except Exception as e:
            self.logger.error("Tutor chat failed: %s", e, exc_info=True)
            return FALLBACK_REPLY
