import logging
import os
import sys
from pathlib import Path
from threading import Lock
from typing import Any, TypeVar, cast

from dotenv import load_dotenv

from anatomy_quiz.components.configuration.configuration import Configuration
from anatomy_quiz.components.configuration.configuration_interface import (
    ConfigurationInterface,
)
from anatomy_quiz.components.gemini.gemini_client import GeminiClient
from anatomy_quiz.components.logger.logger import DEFAULT_LOG_FORMAT, Logger
from anatomy_quiz.components.resilience.resilient_caller import ResilientCaller


load_dotenv()

DEFAULT_MODEL_NAME = "gemini-2.0-flash-thinking-exp-1219"

_instrumented = False


def _is_test_environment() -> bool:
    """
    Check if we are running in a test environment.

    Returns:
        True if running under pytest or if TESTING env var is set, False otherwise.
    """
    if any("pytest" in arg for arg in sys.argv):
        return True

    if os.getenv("TESTING", "").lower() in ("true", "1", "yes"):
        return True

    return False


def _validate_otel_env_vars() -> None:
    """
    Validate OpenTelemetry/Langfuse environment variables for instrumentation.

    Validation is skipped when `LANGFUSE_PUBLIC_KEY`, `LANGFUSE_SECRET_KEY` and
    `LANGFUSE_BASE_URL` are all set (native Langfuse export). Otherwise
    `OTEL_EXPORTER_OTLP_ENDPOINT` and `OTEL_EXPORTER_OTLP_HEADERS` are required.

    Raises:
        RuntimeError: If the manual OTLP variables are missing or empty.
    """
    otel_endpoint: str = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "").strip()
    otel_headers: str = os.getenv("OTEL_EXPORTER_OTLP_HEADERS", "").strip()

    langfuse_public_key: str = os.getenv("LANGFUSE_PUBLIC_KEY", "").strip()
    langfuse_secret_key: str = os.getenv("LANGFUSE_SECRET_KEY", "").strip()
    langfuse_base_url: str = os.getenv("LANGFUSE_BASE_URL", "").strip()

    if langfuse_public_key and langfuse_secret_key and langfuse_base_url:
        return

    if not otel_endpoint:
        raise RuntimeError(
            "OTEL_EXPORTER_OTLP_ENDPOINT environment variable is not set or is empty. "
            "Please set it to a valid OTLP endpoint URL or disable TRACING_ENABLED."
        )

    if not otel_headers:
        raise RuntimeError(
            "OTEL_EXPORTER_OTLP_HEADERS environment variable is not set or is empty, "
            "and the Langfuse keys are not available. Set OTEL_EXPORTER_OTLP_HEADERS "
            "(e.g., 'Authorization=Basic <base64_credentials>') or provide "
            "LANGFUSE_PUBLIC_KEY, LANGFUSE_SECRET_KEY and LANGFUSE_BASE_URL."
        )


def _enable_tracing(logger: logging.Logger) -> None:
    """Instrument the Gemini SDK once per process."""
    global _instrumented
    if _instrumented:
        return

    from openinference.instrumentation.google_genai import GoogleGenAIInstrumentor

    _validate_otel_env_vars()
    GoogleGenAIInstrumentor().instrument()
    _instrumented = True
    logger.info("Google GenAI instrumentation enabled")


T = TypeVar("T")


class ComponentsMeta(type):
    _instances: dict[tuple[type, str], "Components"] = {}
    _lock: Lock = Lock()

    def __call__(cls, *args, **kwargs):
        env = args[0] if args else kwargs.get("env")
        if env is None:
            raise ValueError("Environment must be provided")

        env_key = str(env)
        key = (cls, env_key)
        with cls._lock:
            if key not in cls._instances:
                instance = super().__call__(*args, **kwargs)
                cls._instances[key] = instance
        return cls._instances[key]


class Components(metaclass=ComponentsMeta):
    """
    Per-environment registry of shared components.

    The Gemini client is built on first use so that a missing credential only
    fails the code path that needs it.
    """

    def __init__(self, env: str, config_path: str) -> None:
        self.__env: str = env
        root_dir: str = str(Path(__file__).resolve().parents[2])
        self.__config_path: str = os.path.join(root_dir, config_path)
        self.__lock: Lock = Lock()
        self.__components: dict[type[Any], Any] = self.__bootstrap_components()

    def __bootstrap_components(self) -> dict[type[Any], Any]:
        if self.__env in {"development", "staging", "production", "test"}:
            return self.__get_components()

        raise ValueError(f"Invalid environment: {self.__env}")

    def __get_components(self) -> dict[type[Any], Any]:
        configuration: ConfigurationInterface = Configuration(
            self.__env, self.__config_path
        )

        logger = Logger(
            log_format=configuration.get_configuration(
                "LOG_FORMAT", str, default=DEFAULT_LOG_FORMAT
            ),
            log_level=configuration.get_configuration("LOG_LEVEL", str, default="INFO"),
        )
        _logger_instance = logger.get_logger("Components")

        if configuration.get_configuration(
            "TRACING_ENABLED", bool, default=False
        ) and not _is_test_environment():
            _enable_tracing(_logger_instance)

        resilient_caller = ResilientCaller(
            logger=logger.get_logger("ResilientCaller"),
            max_retries=configuration.get_configuration(
                "RETRY_MAX_RETRIES", int, default=3
            ),
            initial_delay=configuration.get_configuration(
                "RETRY_INITIAL_DELAY", float, default=2.0
            ),
        )

        components: dict[type[Any], Any] = {
            ConfigurationInterface: configuration,
            Logger: logger,
            ResilientCaller: resilient_caller,
        }

        return components

    def __build_gemini_client(self) -> GeminiClient:
        configuration = self.get_component(ConfigurationInterface)
        model_name = configuration.get_configuration(
            "MODEL_NAME", str, default=DEFAULT_MODEL_NAME
        )
        return GeminiClient(
            api_key=configuration.get_configuration("GEMINI_API_KEY", str, default=""),
            model_name=model_name,
            vision_model_name=configuration.get_configuration(
                "VISION_MODEL_NAME", str, default=model_name
            ),
            logger=self.get_component(Logger).get_logger("GeminiClient"),
        )

    def get_component(self, component_name: type[T]) -> T:
        if component_name is GeminiClient:
            with self.__lock:
                if GeminiClient not in self.__components:
                    self.__components[GeminiClient] = self.__build_gemini_client()

        if component_name not in self.__components:
            raise ValueError(f"Component {component_name} not found")

        return cast(T, self.__components[component_name])

    def get_config_path(self) -> str:
        return self.__config_path
