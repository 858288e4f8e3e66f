from abc import ABC, abstractmethod

from anatomy_quiz.entities.quiz import StationResult


class StationServiceInterface(ABC):
    @abstractmethod
    async def check_station_image(
        self, image: str, topic: str | None = None
    ) -> StationResult:
        """
        Check whether `image` is a usable anatomy station and build its questions.

        Returns {"is_valid": False, "questions": []} on any failure except
        exhausted retries, which are raised.
        """
