"""Error types raised while generating scoring spreadsheets."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover - typing only
    from aufguss_scoring.pipeline import Stage


class GenerationError(Exception):
    """Base class for every failure that ends a generation run.

    The orchestrator fills in ``stage`` before re-raising so callers can tell
    which step of the pipeline failed.
    """

    def __init__(self, message: str, *, stage: Optional["Stage"] = None) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        return self.message


class RemoteReadError(GenerationError):
    """A range read or metadata fetch failed."""


class RemoteWriteError(GenerationError):
    """A create, copy or batch update call failed."""


class NotFoundError(GenerationError):
    """An expected sheet or marker was not present."""


class CancelledError(GenerationError):
    """The run observed a cancellation request between two steps."""


class ValidationError(GenerationError):
    """The competition definition cannot be generated."""


class CredentialsError(GenerationError):
    """The credential blob is malformed or rejected."""


class ConfigurationError(Exception):
    """Stored settings or competition files could not be read."""
