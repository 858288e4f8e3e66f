from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from anatomy_quiz.entities.quiz import MentorFeedback


class MentorServiceInterface(ABC):
    @abstractmethod
    async def analyze_performance(self, stats: Mapping[str, Any]) -> MentorFeedback:
        """Turn a learner's quiz statistics into feedback and a study roadmap."""
