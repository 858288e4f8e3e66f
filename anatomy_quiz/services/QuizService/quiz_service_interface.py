from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from anatomy_quiz.entities.content import ContentItem
from anatomy_quiz.entities.quiz import Difficulty, GeneratedMCQResponse


class QuizServiceInterface(ABC):
    @abstractmethod
    async def generate_mcq_questions(
        self,
        topic: str,
        count: int,
        difficulties: Sequence[Difficulty | str],
        files: Mapping[str, Sequence[ContentItem]] | None = None,
    ) -> GeneratedMCQResponse:
        """
        Generate `count` multiple-choice questions on `topic`.

        `files` may hold "theory", "clinical" and "sample" document lists.
        Every failure is raised to the caller.
        """
