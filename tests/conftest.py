"""Shared fixtures for civic triage tests.

All tests run offline: the analysis service is either a ScriptedAnalysisPort
or a mocked google-genai client.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add the repo root to path so tests can import civic_triage without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

from civic_triage.agents.port import TriageResponse  # noqa: E402
from civic_triage.agents.scripted import ScriptedAnalysisPort  # noqa: E402
from civic_triage.llm.schemas import TriageResult  # noqa: E402
from civic_triage.models.report import PhotoPayload  # noqa: E402
from civic_triage.models.user import User  # noqa: E402
from civic_triage.services.badges import BadgeCatalog, DEFAULT_BADGES  # noqa: E402
from civic_triage.services.lifecycle import CivicLifecycle  # noqa: E402
from civic_triage.utils.clock import FrozenClock  # noqa: E402

# Noon keeps +/- a few hours on the same calendar day
NOON = datetime(2024, 5, 15, 12, 0, 0).astimezone()


def make_result(category: str = "Pothole", severity: int = 3, priority_score: int = 50) -> TriageResult:
    return TriageResult(
        category=category,
        severity=severity,
        priority_score=priority_score,
        summary=f"{category} reported by a citizen.",
        suggested_action="Dispatch road crew within 24 hours",
        probable_cause="Heavy vehicle traffic",
        confidence_level=0.9,
    )


def make_response(**kwargs) -> TriageResponse:
    return TriageResponse(result=make_result(**kwargs))


@pytest.fixture
def frozen_clock():
    """Clock fixed at noon on 2024-05-15 (local time)."""
    return FrozenClock(NOON)


@pytest.fixture
def photo():
    """Tiny PNG payload."""
    return PhotoPayload(
        data="iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII=",
        mime_type="image/png",
    )


@pytest.fixture
def triage_result():
    return make_result()


@pytest.fixture
def scripted_port():
    """Scripted port with an empty queue; tests queue their own outcomes."""
    return ScriptedAnalysisPort()


@pytest.fixture
def catalog():
    """The built-in badge catalog (independent of config/badges.yaml)."""
    return BadgeCatalog(DEFAULT_BADGES)


@pytest.fixture
def users():
    return [
        User(id="citizen", name="John Smith", credits=0, is_phone_verified=True, neighborhood="North Park"),
        User(id="admin", name="Alex Johnson", credits=150, is_phone_verified=True, neighborhood="Downtown Core"),
    ]


@pytest.fixture
def lifecycle(scripted_port, users, catalog, frozen_clock):
    """Lifecycle with two users, the default badges and a frozen clock."""
    return CivicLifecycle(scripted_port, users=users, catalog=catalog, clock=frozen_clock)
