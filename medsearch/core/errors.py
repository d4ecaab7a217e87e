"""Error kinds raised at the doctor search operation boundaries."""

from typing import Optional


class MedsearchError(RuntimeError):
    """Base class for errors surfaced to the search UI."""


class FetchError(MedsearchError):
    """Raised when the data store or the matching service cannot be reached or fails."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class ValidationError(MedsearchError):
    """Raised when input cannot be turned into a lookup (e.g. no city in a place)."""
