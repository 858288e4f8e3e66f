"""
Thin wrapper around the Google Gen AI client.

Owns the credential check and translates SDK errors into the package's
TransientServiceError / FatalServiceError so callers never have to inspect
error messages to decide whether to retry.
"""

import logging
from typing import Any

from google import genai
from google.genai import errors, types

from anatomy_quiz.entities.errors import (
    ConfigurationError,
    FatalServiceError,
    ServiceError,
    TransientServiceError,
    TRANSIENT_MESSAGE_MARKERS,
    TRANSIENT_STATUS_CODES,
    TRANSIENT_STATUS_NAMES,
)


def to_service_error(error: errors.APIError) -> ServiceError:
    """Map an SDK error onto the retry classification."""
    message = str(error)
    status_name = (error.status or "").upper()

    if (
        error.code in TRANSIENT_STATUS_CODES
        or status_name in TRANSIENT_STATUS_NAMES
        or any(marker in message.lower() for marker in TRANSIENT_MESSAGE_MARKERS)
    ):
        return TransientServiceError(message, status_code=error.code)
    return FatalServiceError(message, status_code=error.code)


class GeminiClient:
    """Explicitly constructed Gemini client shared by all services."""

    def __init__(
        self,
        api_key: str | None,
        model_name: str,
        logger: logging.Logger,
        vision_model_name: str | None = None,
        client: genai.Client | None = None,
    ) -> None:
        """
        Args:
            api_key: Gemini API key, must be non-empty
            model_name: Default model for text generation
            logger: Logger instance
            vision_model_name: Model for image tasks (defaults to model_name)
            client: Pre-built genai.Client, mainly for tests

        Raises:
            ConfigurationError: If the API key is missing.
        """
        api_key = (api_key or "").strip()
        if not api_key and client is None:
            raise ConfigurationError(
                "GEMINI_API_KEY is missing. Set it in the environment or .env file."
            )

        self.model_name = model_name
        self.vision_model_name = vision_model_name or model_name
        self.logger = logger
        self._client = client or genai.Client(api_key=api_key)

        self.logger.info(
            "GeminiClient initialized. Model: %s, Vision model: %s",
            self.model_name,
            self.vision_model_name,
        )

    async def generate_content(
        self,
        contents: list[Any],
        config: types.GenerateContentConfig | None = None,
        model_name: str | None = None,
    ) -> str:
        """
        Send one generate_content request and return the response text.

        Raises:
            TransientServiceError: Rate limit, overload or quota errors.
            FatalServiceError: Any other API error.
        """
        model = model_name or self.model_name
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except errors.APIError as e:
            service_error = to_service_error(e)
            self.logger.warning(
                "Gemini %s failed with %s error (code=%s): %s",
                model,
                service_error.kind.value,
                e.code,
                e.message,
            )
            raise service_error from e

        text = response.text if response else None
        if not text:
            self.logger.warning("Gemini %s returned an empty response", model)
            return ""
        return text
