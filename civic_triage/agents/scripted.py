"""
Scripted analysis port.

Plays back queued triage outcomes and predictions without any network access.
Used by the offline demo and by tests.

Usage:
    port = ScriptedAnalysisPort(
        triage_outcomes=[TriageResponse(result), ResponseParseError("bad json")],
    )
    response = await port.triage("Pothole", photo, None, False)
"""

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from ..errors import ExternalServiceUnavailable
from ..llm.schemas import GeoPoint, Prediction
from ..models.report import PhotoPayload
from .port import TriageResponse

TriageOutcome = Union[TriageResponse, Exception]


@dataclass(frozen=True)
class TriageCall:
    """One recorded ``triage`` invocation."""

    description: str
    mime_type: str
    location: Optional[GeoPoint]
    deep_analysis: bool


class ScriptedAnalysisPort:
    """AnalysisPort that answers from a queue of prepared outcomes."""

    def __init__(
        self,
        triage_outcomes: Iterable[TriageOutcome] = (),
        predictions: Optional[Union[list[Prediction], Exception]] = None,
        delay_seconds: float = 0.0,
    ):
        """
        Args:
            triage_outcomes: Responses (or exceptions to raise), consumed in order
            predictions: Predictions to return, or an exception to raise
            delay_seconds: Simulated latency per call
        """
        self._triage_outcomes: deque[TriageOutcome] = deque(triage_outcomes)
        self._predictions = predictions
        self.delay_seconds = delay_seconds
        self.triage_calls: list[TriageCall] = []
        self.predict_calls: list[Optional[GeoPoint]] = []

    def queue(self, outcome: TriageOutcome) -> None:
        self._triage_outcomes.append(outcome)

    @property
    def remaining(self) -> int:
        return len(self._triage_outcomes)

    async def triage(
        self,
        description: str,
        photo: PhotoPayload,
        location: Optional[GeoPoint],
        deep_analysis: bool,
    ) -> TriageResponse:
        self.triage_calls.append(TriageCall(description, photo.mime_type, location, deep_analysis))
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if not self._triage_outcomes:
            raise ExternalServiceUnavailable("No scripted triage response left.")
        outcome = self._triage_outcomes.popleft()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def predict(self, location: Optional[GeoPoint]) -> list[Prediction]:
        self.predict_calls.append(location)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if isinstance(self._predictions, Exception):
            raise self._predictions
        return list(self._predictions or [])
