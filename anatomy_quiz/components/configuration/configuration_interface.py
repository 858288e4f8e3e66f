from abc import ABC, abstractmethod
from typing import Any, TypeVar

T = TypeVar("T")


class ConfigurationInterface(ABC):
    @abstractmethod
    def get_configuration(self, key: str, value_type: type[T], default: Any = ...) -> T:
        """Return `key` coerced to `value_type`, or `default` when it is unset."""
