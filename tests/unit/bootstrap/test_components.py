import os
from unittest.mock import patch

import pytest

from anatomy_quiz.bootstrap import components
from anatomy_quiz.bootstrap.bootstrapper import bootstrap_services
from anatomy_quiz.components.configuration.configuration_interface import (
    ConfigurationInterface,
)
from anatomy_quiz.components.gemini.gemini_client import GeminiClient
from anatomy_quiz.components.resilience.resilient_caller import ResilientCaller
from anatomy_quiz.dependencies.services import get_quiz_service
from anatomy_quiz.entities.errors import ConfigurationError

CONFIG_KEYS = (
    "GEMINI_API_KEY",
    "MODEL_NAME",
    "VISION_MODEL_NAME",
    "RETRY_MAX_RETRIES",
    "RETRY_INITIAL_DELAY",
    "TRACING_ENABLED",
)


@pytest.fixture(autouse=True)
def fresh_components(monkeypatch):
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)
    components.ComponentsMeta._instances.clear()
    yield
    components.ComponentsMeta._instances.clear()


@pytest.fixture
def config_dir(tmp_path):
    (tmp_path / "test.env").write_text(
        "GEMINI_API_KEY=file-key\nMODEL_NAME=gemini-test\nRETRY_MAX_RETRIES=5\n"
    )
    return str(tmp_path)


@pytest.mark.unit
class TestComponentsOTELEnvVarsValidation:
    """Test suite for OpenTelemetry/Langfuse environment variables validation."""

    @pytest.fixture(autouse=True)
    def clear_otel_env(self, monkeypatch):
        for key in (
            "OTEL_EXPORTER_OTLP_ENDPOINT",
            "OTEL_EXPORTER_OTLP_HEADERS",
            "LANGFUSE_PUBLIC_KEY",
            "LANGFUSE_SECRET_KEY",
            "LANGFUSE_BASE_URL",
        ):
            monkeypatch.delenv(key, raising=False)

    def test_otel_validation_raises_error_when_endpoint_not_set(self):
        with pytest.raises(RuntimeError) as exc_info:
            components._validate_otel_env_vars()

        assert "OTEL_EXPORTER_OTLP_ENDPOINT" in str(exc_info.value)
        assert "not set or is empty" in str(exc_info.value)

    def test_otel_validation_raises_error_when_endpoint_is_empty(self, monkeypatch):
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "  ")

        with pytest.raises(RuntimeError) as exc_info:
            components._validate_otel_env_vars()

        assert "OTEL_EXPORTER_OTLP_ENDPOINT" in str(exc_info.value)

    def test_otel_validation_raises_error_when_headers_not_set(self, monkeypatch):
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "https://example.com/otlp")

        with pytest.raises(RuntimeError) as exc_info:
            components._validate_otel_env_vars()

        assert "OTEL_EXPORTER_OTLP_HEADERS" in str(exc_info.value)
        assert "not set or is empty" in str(exc_info.value)

    def test_otel_validation_succeeds_with_direct_headers(self, monkeypatch):
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_ENDPOINT", "https://example.com/otlp")
        monkeypatch.setenv("OTEL_EXPORTER_OTLP_HEADERS", "Authorization=Basic dGVzdA==")

        components._validate_otel_env_vars()

    def test_otel_validation_skipped_with_native_langfuse_keys(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-test")
        monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-test")
        monkeypatch.setenv("LANGFUSE_BASE_URL", "https://cloud.langfuse.com")

        components._validate_otel_env_vars()

        assert "OTEL_EXPORTER_OTLP_HEADERS" not in os.environ

    def test_partial_langfuse_keys_still_require_otlp(self, monkeypatch):
        monkeypatch.setenv("LANGFUSE_PUBLIC_KEY", "pk-test")
        monkeypatch.setenv("LANGFUSE_SECRET_KEY", "sk-test")

        with pytest.raises(RuntimeError):
            components._validate_otel_env_vars()


@pytest.mark.unit
class TestIsTestEnvironment:
    def test_detects_pytest(self):
        assert components._is_test_environment() is True

    def test_testing_flag(self, monkeypatch):
        monkeypatch.setattr(components.sys, "argv", ["main.py"])
        monkeypatch.setenv("TESTING", "1")

        assert components._is_test_environment() is True

    def test_plain_run(self, monkeypatch):
        monkeypatch.setattr(components.sys, "argv", ["main.py"])
        monkeypatch.setenv("TESTING", "false")

        assert components._is_test_environment() is False


@pytest.mark.unit
class TestComponents:
    def test_same_env_returns_singleton(self, config_dir):
        first = components.Components("test", config_dir)
        second = components.Components("test", config_dir)

        assert first is second

    def test_invalid_env_is_rejected(self, config_dir):
        with pytest.raises(ValueError):
            components.Components("qa", config_dir)

    def test_env_is_required(self):
        with pytest.raises(ValueError):
            components.Components()

    def test_retry_settings_come_from_configuration(self, config_dir):
        registry = components.Components("test", config_dir)

        caller = registry.get_component(ResilientCaller)

        assert caller.max_retries == 5
        assert caller.initial_delay == 2.0

    def test_process_environment_overrides_file(self, config_dir, monkeypatch):
        monkeypatch.setenv("MODEL_NAME", "gemini-env")
        registry = components.Components("test", config_dir)

        configuration = registry.get_component(ConfigurationInterface)

        assert configuration.get_configuration("MODEL_NAME", str) == "gemini-env"

    def test_gemini_client_is_built_lazily_once(self, config_dir):
        registry = components.Components("test", config_dir)

        with patch("anatomy_quiz.components.gemini.gemini_client.genai.Client") as client_cls:
            first = registry.get_component(GeminiClient)
            second = registry.get_component(GeminiClient)

        assert first is second
        client_cls.assert_called_once_with(api_key="file-key")
        assert first.model_name == "gemini-test"
        assert first.vision_model_name == "gemini-test"

    def test_unknown_component_raises(self, config_dir):
        registry = components.Components("test", config_dir)

        with pytest.raises(ValueError):
            registry.get_component(dict)

    def test_missing_api_key_fails_service_creation(self, tmp_path):
        registry = components.Components("test", str(tmp_path))

        with pytest.raises(ConfigurationError):
            get_quiz_service(registry)

    def test_bootstrap_services_wires_every_service(self, config_dir):
        with patch("anatomy_quiz.components.gemini.gemini_client.genai.Client"):
            services = bootstrap_services(env="test", config_path=config_dir)

        assert services.quiz.gemini_client is services.tutor_chat.gemini_client
        assert services.station.resilient_caller is services.mentor.resilient_caller
