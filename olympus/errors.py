"""Exception types raised by the Olympus engine."""

from __future__ import annotations


class OlympusError(Exception):
    """Base class for engine errors."""


class ValidationError(OlympusError, ValueError):
    """Required user input is missing or malformed.

    Raised before any repository call, so no partial state is written.
    """

    def __init__(self, errors: list[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class RepositoryError(OlympusError):
    """A read or write against the record repository failed."""


class NotFoundError(RepositoryError):
    """The addressed record does not exist."""


class SessionStateError(OlympusError):
    """A focus timer transition is not legal from the current state."""
