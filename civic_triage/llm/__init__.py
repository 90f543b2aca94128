"""Analysis model prompts and structured-output schemas."""

from .schemas import (
    CitationKind,
    CitationSource,
    GeoPoint,
    Prediction,
    PredictionBatch,
    PredictionType,
    ReviewSnippet,
    RiskLevel,
    TriageResult,
)

__all__ = [
    "CitationKind",
    "CitationSource",
    "GeoPoint",
    "Prediction",
    "PredictionBatch",
    "PredictionType",
    "ReviewSnippet",
    "RiskLevel",
    "TriageResult",
]
