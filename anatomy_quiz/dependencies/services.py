from anatomy_quiz.bootstrap.components import Components
from anatomy_quiz.components.configuration.configuration_interface import (
    ConfigurationInterface,
)
from anatomy_quiz.components.content.content_packer import (
    BINARY_ATTACHMENT_CHAR_COST,
    ContentPacker,
)
from anatomy_quiz.components.gemini.gemini_client import GeminiClient
from anatomy_quiz.components.logger.logger import Logger
from anatomy_quiz.components.resilience.resilient_caller import ResilientCaller
from anatomy_quiz.services.MentorService.mentor_service import MentorService
from anatomy_quiz.services.MentorService.mentor_service_interface import (
    MentorServiceInterface,
)
from anatomy_quiz.services.QuizService.quiz_service import (
    LIMIT_CLINICAL_CHARS,
    LIMIT_SAMPLE_CHARS,
    LIMIT_THEORY_CHARS,
    QuizService,
)
from anatomy_quiz.services.QuizService.quiz_service_interface import (
    QuizServiceInterface,
)
from anatomy_quiz.services.StationService.station_service import StationService
from anatomy_quiz.services.StationService.station_service_interface import (
    StationServiceInterface,
)
from anatomy_quiz.services.TutorChatService.tutor_chat_service import (
    TutorChatService,
)
from anatomy_quiz.services.TutorChatService.tutor_chat_service_interface import (
    TutorChatServiceInterface,
)


def get_quiz_service(components: Components) -> QuizServiceInterface:
    """
    Create the question generation service.

    Raises ConfigurationError right away when GEMINI_API_KEY is missing.
    """
    configuration = components.get_component(ConfigurationInterface)
    logger = components.get_component(Logger)

    budgets = {
        "theory": configuration.get_configuration(
            "THEORY_CHAR_LIMIT", int, default=LIMIT_THEORY_CHARS
        ),
        "clinical": configuration.get_configuration(
            "CLINICAL_CHAR_LIMIT", int, default=LIMIT_CLINICAL_CHARS
        ),
        "sample": configuration.get_configuration(
            "SAMPLE_CHAR_LIMIT", int, default=LIMIT_SAMPLE_CHARS
        ),
    }
    binary_cost = configuration.get_configuration(
        "BINARY_ATTACHMENT_CHAR_COST", int, default=BINARY_ATTACHMENT_CHAR_COST
    )

    return QuizService(
        gemini_client=components.get_component(GeminiClient),
        resilient_caller=components.get_component(ResilientCaller),
        logger=logger.get_logger("QuizService"),
        content_packer=ContentPacker(
            binary_cost=binary_cost, logger=logger.get_logger("ContentPacker")
        ),
        budgets=budgets,
        temperature=configuration.get_configuration(
            "LLM_TEMPERATURE", float, default=0.7
        ),
    )


def get_station_service(components: Components) -> StationServiceInterface:
    return StationService(
        gemini_client=components.get_component(GeminiClient),
        resilient_caller=components.get_component(ResilientCaller),
        logger=components.get_component(Logger).get_logger("StationService"),
    )


def get_mentor_service(components: Components) -> MentorServiceInterface:
    return MentorService(
        gemini_client=components.get_component(GeminiClient),
        resilient_caller=components.get_component(ResilientCaller),
        logger=components.get_component(Logger).get_logger("MentorService"),
    )


def get_tutor_chat_service(components: Components) -> TutorChatServiceInterface:
    configuration = components.get_component(ConfigurationInterface)
    return TutorChatService(
        gemini_client=components.get_component(GeminiClient),
        resilient_caller=components.get_component(ResilientCaller),
        logger=components.get_component(Logger).get_logger("TutorChatService"),
        max_history_turns=configuration.get_configuration(
            "MAX_HISTORY_TURNS", int, default=20
        ),
        temperature=configuration.get_configuration(
            "LLM_TEMPERATURE", float, default=0.7
        ),
    )
