import json
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from anatomy_quiz.components.resilience.resilient_caller import ResilientCaller
from anatomy_quiz.entities.errors import QuotaExceededError, TransientServiceError
from anatomy_quiz.services.MentorService.mentor_service import (
    FALLBACK_ANALYSIS,
    MentorService,
    default_feedback,
)

STATS = {
    "total_questions": 120,
    "accuracy": 0.64,
    "by_topic": {"Chi trên": 0.8, "Đầu mặt cổ": 0.41},
    "by_difficulty": {"Ghi nhớ": 0.85, "Vận dụng cao / Lâm sàng": 0.35},
}


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("MentorServiceTest")


@pytest.fixture
def gemini_client() -> MagicMock:
    client = MagicMock()
    client.generate_content = AsyncMock(
        return_value=json.dumps(
            {
                "analysis": "Bạn nắm chắc kiến thức nền.",
                "strengths": ["Chi trên"],
                "weaknesses": ["Đầu mặt cổ", "  "],
                "roadmap": "Ôn lại thần kinh sọ",
            },
            ensure_ascii=False,
        )
    )
    return client


@pytest.fixture
def mentor_service(gemini_client: MagicMock, logger: logging.Logger) -> MentorService:
    return MentorService(
        gemini_client=gemini_client,
        resilient_caller=ResilientCaller(logger=logger, max_retries=0, sleep=AsyncMock()),
        logger=logger,
    )


class TestAnalyzePerformance:
    @pytest.mark.asyncio
    async def test_returns_feedback(
        self, mentor_service: MentorService, gemini_client: MagicMock
    ) -> None:
        result = await mentor_service.analyze_performance(STATS)

        assert result == {
            "analysis": "Bạn nắm chắc kiến thức nền.",
            "strengths": ["Chi trên"],
            "weaknesses": ["Đầu mặt cổ"],
            "roadmap": ["Ôn lại thần kinh sọ"],
        }
        contents, _ = gemini_client.generate_content.call_args.args
        assert "Đầu mặt cổ" in contents[0].parts[0].text

    @pytest.mark.asyncio
    async def test_missing_lists_default_to_empty(
        self, mentor_service: MentorService, gemini_client: MagicMock
    ) -> None:
        gemini_client.generate_content.return_value = '{"analysis": "Ổn"}'

        result = await mentor_service.analyze_performance(STATS)

        assert result == {"analysis": "Ổn", "strengths": [], "weaknesses": [], "roadmap": []}

    @pytest.mark.asyncio
    async def test_unparsable_response_returns_default(
        self, mentor_service: MentorService, gemini_client: MagicMock
    ) -> None:
        gemini_client.generate_content.return_value = "not json"

        result = await mentor_service.analyze_performance(STATS)

        assert result == default_feedback()
        assert result["analysis"] == FALLBACK_ANALYSIS

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_default(
        self, mentor_service: MentorService, gemini_client: MagicMock
    ) -> None:
        gemini_client.generate_content.side_effect = RuntimeError("socket closed")

        assert await mentor_service.analyze_performance(STATS) == default_feedback()

    @pytest.mark.asyncio
    async def test_quota_error_propagates(
        self, mentor_service: MentorService, gemini_client: MagicMock
    ) -> None:
        gemini_client.generate_content.side_effect = TransientServiceError(
            "RESOURCE_EXHAUSTED", 429
        )

        with pytest.raises(QuotaExceededError):
            await mentor_service.analyze_performance(STATS)
