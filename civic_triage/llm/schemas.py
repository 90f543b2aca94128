"""
Pydantic schemas for analysis service responses.

These models validate the structured JSON the analysis model returns for
triage and predictions. The ``*_RESPONSE_SCHEMA`` dicts are the matching
response schemas handed to Gemini's structured-output mode.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """A latitude/longitude pair."""

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    model_config = ConfigDict(frozen=True)

    def describe(self) -> str:
        return f"Latitude {self.latitude}, Longitude {self.longitude}"


class TriageResult(BaseModel):
    """Structured triage of a single citizen report."""

    category: str = Field(..., min_length=1, description="Issue category (e.g. Pothole, Graffiti, Water Leak)")
    severity: int = Field(..., ge=1, le=5, description="1 (low) to 5 (critical)")
    priority_score: int = Field(..., ge=1, le=100, description="Prioritization score, 1 to 100")
    summary: str = Field(..., description="One-sentence summary of the issue")
    suggested_action: str = Field(..., description="Recommended immediate action for the municipal team")
    probable_cause: str = Field(..., description="Likely cause based on visual evidence and context")
    confidence_level: float = Field(..., ge=0.0, le=1.0, description="Confidence of the analysis, 0 to 1")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "category": "Pothole",
                "severity": 4,
                "priority_score": 82,
                "summary": "A deep pothole spans most of the eastbound lane.",
                "suggested_action": "Dispatch road crew within 24 hours",
                "probable_cause": "Heavy vehicle traffic",
                "confidence_level": 0.91,
            }
        }
    )


class CitationKind(str, Enum):
    """Where a grounding source came from."""

    WEB = "web"
    MAPS = "maps"


class ReviewSnippet(BaseModel):
    """A place review backing a maps citation."""

    uri: Optional[str] = None
    title: Optional[str] = None


class CitationSource(BaseModel):
    """A grounding source attached to a triage result."""

    kind: CitationKind = CitationKind.WEB
    uri: Optional[str] = Field(None, description="Full URL of the source")
    title: Optional[str] = Field(None, description="Title of the source")
    review_snippets: list[ReviewSnippet] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class PredictionType(str, Enum):
    """Kinds of infrastructure failure the forecaster predicts."""

    POTHOLE_CRACK = "Pothole/Crack Formation"
    FLOODING = "Localized Flooding"
    STRUCTURAL_STRESS = "Structural Stress"


class RiskLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Prediction(BaseModel):
    """A forecast infrastructure issue."""

    id: str
    issue_type: PredictionType = Field(..., alias="type")
    location: GeoPoint
    risk_level: RiskLevel = Field(..., alias="riskLevel")
    timeframe: str = Field(..., description="Estimated timeframe, e.g. 'Next 2-4 weeks'")
    reasoning: str
    confidence: float = Field(..., ge=0.0, le=1.0)

    model_config = ConfigDict(populate_by_name=True)


class PredictionBatch(BaseModel):
    """Envelope the prediction model answers with."""

    predictions: list[Prediction] = Field(default_factory=list)


# =============================================================================
# Gemini response schemas (OpenAPI subset accepted by google-genai)
# =============================================================================

TRIAGE_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "category": {
            "type": "STRING",
            "description": "The category of the issue (e.g., Pothole, Graffiti, Water Leak, "
            "Streetlight Out, Trash Overflow, Road Hazard).",
        },
        "severity": {
            "type": "INTEGER",
            "description": "An integer from 1 (low) to 5 (critical) representing the severity.",
        },
        "priority_score": {
            "type": "INTEGER",
            "description": "A score from 1 to 100 for prioritization, considering urgency, location, and severity.",
        },
        "summary": {
            "type": "STRING",
            "description": "A concise, one-sentence summary of the issue based on all available information.",
        },
        "suggested_action": {
            "type": "STRING",
            "description": 'The recommended immediate action for the municipal team '
            '(e.g., "Dispatch road crew within 24 hours").',
        },
        "probable_cause": {
            "type": "STRING",
            "description": "A brief, likely cause of the issue based on visual evidence and context "
            '(e.g., "Heavy vehicle traffic," "Water damage," "Vandalism," "Natural wear and tear").',
        },
        "confidence_level": {
            "type": "NUMBER",
            "description": "A number between 0 and 1 indicating the confidence of the analysis.",
        },
    },
    "required": [
        "category",
        "severity",
        "priority_score",
        "summary",
        "suggested_action",
        "probable_cause",
        "confidence_level",
    ],
}

PREDICTION_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "predictions": {
            "type": "ARRAY",
            "description": "An array of predicted infrastructure issues.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING", "description": "A unique identifier for the prediction."},
                    "type": {
                        "type": "STRING",
                        "enum": [t.value for t in PredictionType],
                        "description": "The type of issue predicted.",
                    },
                    "location": {
                        "type": "OBJECT",
                        "description": "The predicted latitude and longitude.",
                        "properties": {
                            "latitude": {"type": "NUMBER"},
                            "longitude": {"type": "NUMBER"},
                        },
                        "required": ["latitude", "longitude"],
                    },
                    "riskLevel": {
                        "type": "STRING",
                        "enum": [r.value for r in RiskLevel],
                        "description": "The assessed risk level.",
                    },
                    "timeframe": {
                        "type": "STRING",
                        "description": "The estimated timeframe for the issue (e.g., 'Next 2-4 weeks').",
                    },
                    "reasoning": {
                        "type": "STRING",
                        "description": "A detailed explanation for the prediction, citing synthesized data sources.",
                    },
                    "confidence": {
                        "type": "NUMBER",
                        "description": "A confidence score from 0 to 1 for the prediction.",
                    },
                },
                "required": ["id", "type", "location", "riskLevel", "timeframe", "reasoning", "confidence"],
            },
        }
    },
}
