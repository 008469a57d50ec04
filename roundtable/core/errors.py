"""
Error types for Roundtable.

GenerationError subclasses surface to the operator as one "generation failed"
notice. PersistenceUnavailable never leaves the persistence adapter.
"""

from typing import Optional


class RoundtableError(Exception):
    """Base class for all Roundtable errors."""
    pass


class GenerationError(RoundtableError):
    """Raised when a plot generation does not produce a usable artifact."""
    pass


class GenerationTimeout(GenerationError):
    """Raised when the generation call exceeds its deadline."""

    def __init__(self, timeout_seconds: float):
        super().__init__(f"Plot generation timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


class GenerationFailure(GenerationError):
    """Raised when the provider or network call itself fails."""
    pass


class ParseFailure(GenerationError):
    """Raised when the response is not recoverable JSON or lacks plot_hook."""

    def __init__(self, message: str, raw: Optional[str] = None):
        super().__init__(message)
        self.raw_preview = (raw or "")[:200]


class NoCharacterSelected(RoundtableError):
    """Raised before generation when the host has no active character."""
    pass


class PersistenceUnavailable(RoundtableError):
    """Raised by a snapshot backend that cannot be reached."""
    pass
