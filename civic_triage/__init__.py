"""
Civic triage engine.

Citizens submit photo reports of municipal issues, an external AI model
triages them, and admins accept, reject, resolve and validate them. Validated
reports earn their owners credits, streaks and badges.

Usage:
    from civic_triage import CivicLifecycle, GeminiAnalysisClient, EngineConfig

    config = EngineConfig.from_env()
    lifecycle = CivicLifecycle.from_config(config, GeminiAnalysisClient.from_config(config), users=users)
"""

from .agents import AnalysisPort, GeminiAnalysisClient, ScriptedAnalysisPort, TriageResponse
from .config import EngineConfig
from .errors import (
    AnalysisError,
    CivicTriageError,
    ExternalServiceUnavailable,
    GeolocationUnavailable,
    ResponseParseError,
    UnknownUserError,
)
from .services.lifecycle import CivicLifecycle, NoOpReason, ValidationOutcome

__version__ = "0.1.0"

__all__ = [
    "AnalysisError",
    "AnalysisPort",
    "CivicLifecycle",
    "CivicTriageError",
    "EngineConfig",
    "ExternalServiceUnavailable",
    "GeminiAnalysisClient",
    "GeolocationUnavailable",
    "NoOpReason",
    "ResponseParseError",
    "ScriptedAnalysisPort",
    "TriageResponse",
    "UnknownUserError",
    "ValidationOutcome",
]
