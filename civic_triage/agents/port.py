"""The external analysis capability the engine depends on.

Anything with these two coroutines can triage reports: the Gemini client in
production, a scripted stand-in for tests and the offline demo.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from ..llm.schemas import CitationSource, GeoPoint, Prediction, TriageResult
from ..models.report import PhotoPayload


@dataclass(frozen=True)
class TriageResponse:
    """Successful triage: the structured result plus optional grounding sources."""

    result: TriageResult
    citations: Optional[tuple[CitationSource, ...]] = None


class AnalysisPort(Protocol):
    """Triage and prediction service.

    Implementations raise ``ExternalServiceUnavailable`` when the service cannot
    be reached and ``ResponseParseError`` when it answers with unusable output.
    """

    async def triage(
        self,
        description: str,
        photo: PhotoPayload,
        location: Optional[GeoPoint],
        deep_analysis: bool,
    ) -> TriageResponse: ...

    async def predict(self, location: Optional[GeoPoint]) -> list[Prediction]: ...
