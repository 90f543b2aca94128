"""Runtime configuration for the civic triage engine.

Values come from keyword arguments or from environment variables (the CLI
loads a ``.env`` file first):

  - GEMINI_API_KEY / GOOGLE_API_KEY / API_KEY: Gemini credential
  - CIVIC_TRIAGE_MODEL (default: gemini-2.5-flash)
  - CIVIC_DEEP_ANALYSIS_MODEL (default: gemini-2.5-pro)
  - CIVIC_PREDICTION_MODEL (default: gemini-2.5-pro)
  - CIVIC_THINKING_BUDGET (default: 32768)
  - CIVIC_REWARD_CREDITS (default: 10)
  - CIVIC_BADGES_FILE: path to a badge catalog YAML
  - CIVIC_LOG_LEVEL (default: INFO)
  - CIVIC_LOG_FILE: optional log file name
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import (
    DEEP_ANALYSIS_THINKING_BUDGET,
    DEFAULT_DEEP_ANALYSIS_MODEL,
    DEFAULT_PREDICTION_MODEL,
    DEFAULT_TRIAGE_MODEL,
    VALIDATION_REWARD_CREDITS,
)

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


def resolve_api_key(explicit: Optional[str] = None) -> Optional[str]:
    """
    Return the Gemini API key to use, or None if none is configured.

    An explicit key wins. Otherwise the environment is checked in order,
    skipping placeholder values that start with "your_".
    """
    if explicit:
        return explicit
    for env_var in API_KEY_ENV_VARS:
        key = os.environ.get(env_var)
        if key and not key.startswith("your_"):
            return key
    return None


@dataclass
class EngineConfig:
    """Configuration for the analysis client, ledger rewards and logging.

    Attributes:
        api_key: Gemini API key (None defers the failure to call time)
        triage_model: Model used for standard triage
        deep_analysis_model: Model used when a report asks for deep analysis
        prediction_model: Model used for infrastructure predictions
        thinking_budget: Thinking tokens for deep analysis and predictions
        reward_credits: Credits granted per validated report
        badge_catalog_path: Optional badge catalog YAML override
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file name
    """

    api_key: Optional[str] = None
    triage_model: str = DEFAULT_TRIAGE_MODEL
    deep_analysis_model: str = DEFAULT_DEEP_ANALYSIS_MODEL
    prediction_model: str = DEFAULT_PREDICTION_MODEL
    thinking_budget: int = DEEP_ANALYSIS_THINKING_BUDGET
    reward_credits: int = VALIDATION_REWARD_CREDITS
    badge_catalog_path: Optional[Path] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def __post_init__(self):
        if self.thinking_budget < 0:
            raise ValueError(f"thinking_budget must be >= 0, got {self.thinking_budget}")
        if self.reward_credits < 0:
            raise ValueError(f"reward_credits must be >= 0, got {self.reward_credits}")
        self.log_level = self.log_level.upper()
        if self.log_level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {self.log_level}")
        if self.badge_catalog_path is not None:
            self.badge_catalog_path = Path(self.badge_catalog_path).expanduser()

    @classmethod
    def from_env(cls, **overrides) -> "EngineConfig":
        """Build a config from environment variables; keyword overrides win."""
        values = {
            "api_key": resolve_api_key(),
            "triage_model": os.environ.get("CIVIC_TRIAGE_MODEL", DEFAULT_TRIAGE_MODEL),
            "deep_analysis_model": os.environ.get("CIVIC_DEEP_ANALYSIS_MODEL", DEFAULT_DEEP_ANALYSIS_MODEL),
            "prediction_model": os.environ.get("CIVIC_PREDICTION_MODEL", DEFAULT_PREDICTION_MODEL),
            "thinking_budget": int(os.environ.get("CIVIC_THINKING_BUDGET", DEEP_ANALYSIS_THINKING_BUDGET)),
            "reward_credits": int(os.environ.get("CIVIC_REWARD_CREDITS", VALIDATION_REWARD_CREDITS)),
            "badge_catalog_path": os.environ.get("CIVIC_BADGES_FILE") or None,
            "log_level": os.environ.get("CIVIC_LOG_LEVEL", "INFO"),
            "log_file": os.environ.get("CIVIC_LOG_FILE") or None,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
