"""
Global constants for the civic triage engine.

Centralizes reward values, model names and analysis tuning so the services
and the CLI agree on them.
"""

# Gamification
VALIDATION_REWARD_CREDITS = 10  # Flat credit reward per validated report

# Gemini models
MODEL_GEMINI_25_PRO = "gemini-2.5-pro"
MODEL_GEMINI_25_FLASH = "gemini-2.5-flash"

DEFAULT_TRIAGE_MODEL = MODEL_GEMINI_25_FLASH
DEFAULT_DEEP_ANALYSIS_MODEL = MODEL_GEMINI_25_PRO
DEFAULT_PREDICTION_MODEL = MODEL_GEMINI_25_PRO

# Thinking budget (tokens) for deep analysis and predictions
DEEP_ANALYSIS_THINKING_BUDGET = 32768

# Cost per million tokens (USD) for cost logging
MODEL_COSTS = {
    MODEL_GEMINI_25_FLASH: {"input": 0.30, "output": 2.50},
    MODEL_GEMINI_25_PRO: {"input": 1.25, "output": 10.00},
}

# Prediction fallback centre when no location is known (New York City)
DEFAULT_PREDICTION_CENTER = (40.7128, -74.0060)

# Severity at which a report counts as critical on the dashboard
CRITICAL_SEVERITY = 5

# Fallback message when a triage failure carries no text
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."
