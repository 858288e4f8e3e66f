from dataclasses import dataclass

from anatomy_quiz.dependencies.components import get_components
from anatomy_quiz.dependencies.services import (
    get_mentor_service,
    get_quiz_service,
    get_station_service,
    get_tutor_chat_service,
)
from anatomy_quiz.services.MentorService.mentor_service_interface import (
    MentorServiceInterface,
)
from anatomy_quiz.services.QuizService.quiz_service_interface import (
    QuizServiceInterface,
)
from anatomy_quiz.services.StationService.station_service_interface import (
    StationServiceInterface,
)
from anatomy_quiz.services.TutorChatService.tutor_chat_service_interface import (
    TutorChatServiceInterface,
)


@dataclass(frozen=True)
class QuizAIServices:
    quiz: QuizServiceInterface
    station: StationServiceInterface
    mentor: MentorServiceInterface
    tutor_chat: TutorChatServiceInterface


def bootstrap_services(
    env: str = "development",
    config_path: str = "configuration",
) -> QuizAIServices:
    components = get_components(env=env, config_path=config_path)
    return QuizAIServices(
        quiz=get_quiz_service(components),
        station=get_station_service(components),
        mentor=get_mentor_service(components),
        tutor_chat=get_tutor_chat_service(components),
    )
