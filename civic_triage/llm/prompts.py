"""System instructions and request text for the analysis model."""

from typing import Optional

from ..constants import DEFAULT_PREDICTION_CENTER
from .schemas import GeoPoint

TRIAGE_SYSTEM_PROMPT = """You are a Civic Triage AI expert. Your task is to analyze municipal issue reports submitted by citizens.
Evaluate the provided text description, image, and location data to accurately classify the issue, determine its severity and priority, suggest a course of action, and infer a probable cause.
Your response must be a valid JSON object matching the provided schema."""

PREDICTION_SYSTEM_PROMPT = """You are a predictive urban planning AI. Your task is to forecast potential municipal infrastructure issues for a city.
Synthesize hypothetical data from various sources (weather forecasts, traffic patterns, geological surveys, and historical maintenance records) to make informed predictions.
{location_context}
For example, correlate upcoming heavy rainfall with areas known for poor drainage to predict flooding. Or, link increased heavy vehicle traffic on aging roads to predict pothole formation.
Generate a diverse list of 5 to 7 plausible predictions within the simulated city environment.
Your response must be a valid JSON object matching the provided schema."""

PREDICTION_REQUEST = "Generate a predictive report for potential infrastructure issues based on my location."


def triage_description_text(description: str) -> str:
    return f'Issue Description: "{description}"'


def triage_location_text(location: GeoPoint) -> str:
    return f"Issue Location: {location.describe()}"


def prediction_system_prompt(location: Optional[GeoPoint]) -> str:
    """Build the prediction instructions centred on the user, or on a default city."""
    if location:
        context = (
            f"The current user is located at latitude {location.latitude}, longitude {location.longitude}. "
            "Use this as the central point for your analysis."
        )
    else:
        lat, lon = DEFAULT_PREDICTION_CENTER
        context = f"Generate predictions for a major metropolitan area (e.g., center at lat {lat}, lon {lon})."
    return PREDICTION_SYSTEM_PROMPT.format(location_context=context)
