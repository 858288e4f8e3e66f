from abc import ABC, abstractmethod

from anatomy_quiz.entities.quiz import ChatTurn


class TutorChatServiceInterface(ABC):
    @abstractmethod
    async def chat(
        self,
        history: list[ChatTurn],
        message: str,
        image: str | None = None,
    ) -> str:
        """Return the tutor's reply to `message` given the previous turns."""
