"""
Analysis service adapters.

``GeminiAnalysisClient`` talks to Gemini; ``ScriptedAnalysisPort`` replays
prepared outcomes for tests and the offline demo. Both satisfy ``AnalysisPort``.
"""

from .gemini_analysis import GeminiAnalysisClient
from .port import AnalysisPort, TriageResponse
from .scripted import ScriptedAnalysisPort

__all__ = [
    "AnalysisPort",
    "GeminiAnalysisClient",
    "ScriptedAnalysisPort",
    "TriageResponse",
]
