import os
from pathlib import Path
from typing import Any, TypeVar, cast

from dotenv import dotenv_values

from anatomy_quiz.components.configuration.configuration_interface import (
    ConfigurationInterface,
)
from anatomy_quiz.entities.errors import ConfigurationError

T = TypeVar("T")

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


class Configuration(ConfigurationInterface):
    """
    Settings lookup for one environment.

    Values come from `<config_path>/<env>.env` when that file exists, and the
    process environment overrides them.
    """

    def __init__(self, env: str, config_path: str) -> None:
        self.env = env
        self.config_file = Path(config_path) / f"{env}.env"
        self._values: dict[str, str | None] = {}
        if self.config_file.is_file():
            self._values = dict(dotenv_values(self.config_file))

    def _raw(self, key: str) -> str | None:
        value = os.getenv(key)
        if value is None:
            value = self._values.get(key)
        if value is None or not value.strip():
            return None
        return value.strip()

    def get_configuration(self, key: str, value_type: type[T], default: Any = ...) -> T:
        raw = self._raw(key)
        if raw is None:
            if default is ...:
                raise ConfigurationError(f"Missing configuration value: {key}")
            return cast(T, default)

        try:
            if value_type is bool:
                lowered = raw.lower()
                if lowered in _TRUE_VALUES:
                    return cast(T, True)
                if lowered in _FALSE_VALUES:
                    return cast(T, False)
                raise ValueError(raw)
            return value_type(raw)  # type: ignore[call-arg]
        except ValueError as e:
            raise ConfigurationError(
                f"Configuration value {key}={raw!r} is not a valid {value_type.__name__}"
            ) from e
