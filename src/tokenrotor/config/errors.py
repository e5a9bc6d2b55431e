"""Configuration error definitions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class ConfigurationError(RuntimeError):
    """Base class for every problem with the process environment."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required settings are absent or blank."""

    @classmethod
    def for_names(cls, names: Iterable[str]) -> MissingConfigurationError:
        return cls(f"Missing configuration for: {', '.join(sorted(names))}")


class InvalidConfigurationError(ConfigurationError):
    """Raised when a setting is present but cannot be parsed."""

    def __init__(self, name: str, value: str, expected: str) -> None:
        super().__init__(f"Invalid value for {name}: {value!r} (expected {expected})")
        self.name = name
        self.value = value
