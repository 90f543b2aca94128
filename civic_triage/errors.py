"""Exception types for the civic triage engine.

Lifecycle and ledger operations never raise for invalid targets; they degrade
to no-ops. Only the external analysis port and its collaborators raise, and
triage failures are captured on the originating report instead of propagating.
"""

from typing import Optional


class CivicTriageError(Exception):
    """Base class for all engine errors."""


class UnknownUserError(CivicTriageError):
    """A report was submitted for a user the ledger does not know."""

    def __init__(self, user_id: str):
        super().__init__(f"Unknown user: {user_id}")
        self.user_id = user_id


class AnalysisError(CivicTriageError):
    """The external analysis service could not produce a usable result."""


class ExternalServiceUnavailable(AnalysisError):
    """The analysis service is unreachable or not configured (e.g. missing API key)."""


class ResponseParseError(AnalysisError):
    """The analysis service answered, but the payload is malformed or off-schema."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class GeolocationUnavailable(CivicTriageError):
    """Coordinates could not be obtained or are not usable."""
