from enum import Enum
from typing import Literal, NotRequired, TypedDict


class Difficulty(str, Enum):
    """Question levels used by the quiz app, values are shown to students as-is."""

    REMEMBER = "Ghi nhớ"
    UNDERSTAND = "Hiểu"
    APPLY = "Vận dụng thấp"
    CLINICAL = "Vận dụng cao / Lâm sàng"


class MCQQuestion(TypedDict):
    """Single multiple-choice question returned to the quiz UI."""

    id: str
    question: str
    options: list[str]
    correct_answer: int
    explanation: str
    difficulty: str


class GeneratedMCQResponse(TypedDict):
    questions: list[MCQQuestion]


class StationQuestion(TypedDict):
    """One identification item of an anatomy practical station."""

    id: str
    question: str
    answer: str
    explanation: str


class StationResult(TypedDict):
    is_valid: bool
    questions: list[StationQuestion]


class MentorFeedback(TypedDict):
    analysis: str
    strengths: list[str]
    weaknesses: list[str]
    roadmap: list[str]


class ChatTurn(TypedDict):
    """Previous turn of a tutor conversation, `image` is base64 or a data URL."""

    role: Literal["user", "model"]
    text: str
    image: NotRequired[str]
