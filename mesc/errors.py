"""
Exception hierarchy for MESC configuration handling.

Library functions raise these; the tool layer converts them into safe,
user-facing error dicts.
"""

from __future__ import annotations

from typing import Optional


class MescError(Exception):
    """Base exception for MESC errors."""

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class MescNotEnabledError(MescError):
    """Raised when a config is requested while MESC is disabled."""


class InvalidConfigModeError(MescError):
    """Raised when MESC_MODE holds an unknown value."""


class InvalidChainIdError(MescError):
    """Raised when a value cannot be interpreted as a chain id."""


class IntegrityError(MescError):
    """Raised when a config fails validation."""


class MissingEndpointError(MescError):
    """Raised when a referenced endpoint does not exist."""


class ConfigReadError(MescError):
    """Raised when the config file or environment cannot be read."""


class InvalidJsonError(MescError):
    """Raised when config data is not valid JSON or cannot be serialized."""


class MescNotImplementedError(MescError):
    """Raised for inputs the implementation does not support."""


class InvalidInputError(MescError):
    """Raised when user input cannot be parsed."""
