"""Tests for the command-line front-end and the demo seed data."""

import logging
from argparse import Namespace
from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from conftest import NOON

from civic_triage.cli import build_parser, parse_location, run_demo, run_predict
from civic_triage.config import API_KEY_ENV_VARS, EngineConfig
from civic_triage.data.seed import DEMO_ROLE_USERS, demo_users
from civic_triage.errors import GeolocationUnavailable
from civic_triage.models.user import UserRole
from civic_triage.utils.clock import date_key
from civic_triage.utils.logger import EngineLogger


class TestParseLocation:
    """CLI coordinates to GeoPoint."""

    def test_no_location(self):
        """Neither coordinate → no location."""
        assert parse_location(None, None) is None

    def test_both(self):
        """Both coordinates → GeoPoint."""
        point = parse_location(40.7128, -74.006)
        assert point.latitude == 40.7128
        assert point.longitude == -74.006

    def test_partial(self):
        """Only one coordinate → GeolocationUnavailable."""
        with pytest.raises(GeolocationUnavailable):
            parse_location(40.7, None)

    def test_out_of_range(self):
        """Latitude beyond 90 → GeolocationUnavailable."""
        with pytest.raises(GeolocationUnavailable):
            parse_location(123.0, 0.0)


class TestParser:
    """Subcommand parsing."""

    def test_triage_args(self):
        """triage takes a photo path and optional flags."""
        args = build_parser().parse_args(["triage", "photo.jpg", "-d", "Pothole", "--deep", "--lat", "1", "--lon", "2"])
        assert args.command == "triage"
        assert args.deep is True
        assert args.description == "Pothole"
        assert (args.lat, args.lon) == (1.0, 2.0)

    def test_command_required(self):
        """A subcommand is required."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestSeedData:
    """Demo users."""

    def test_demo_users(self):
        """Five users with relative validation dates."""
        users = {u.id: u for u in demo_users(NOON)}
        assert len(users) == 5
        assert users["user-3"].last_validation_date == date_key(NOON - timedelta(days=1))
        assert users["user-1"].last_validation_date == date_key(NOON - timedelta(days=2))
        assert users["user-4"].is_phone_verified is False
        assert users["user-5"].credits == 0
        assert users["user-2"].avatar_url.endswith("seed=Maria")

    def test_role_users(self):
        """Citizen and admin map onto demo users."""
        assert DEMO_ROLE_USERS[UserRole.CITIZEN] == "user-5"
        assert DEMO_ROLE_USERS[UserRole.ADMIN] == "user-1"


class TestDemo:
    """The offline demo runs end to end."""

    @pytest.mark.asyncio
    async def test_demo_runs(self, tmp_path):
        """Demo completes with exit code 0."""
        config = EngineConfig(badge_catalog_path=tmp_path / "missing.yaml")
        assert await run_demo(None, config, MagicMock()) == 0


class TestPredictCommand:
    """predict subcommand exit codes and logging."""

    @pytest.fixture(autouse=True)
    def _restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    @pytest.mark.asyncio
    async def test_failure_logged_as_failed(self, monkeypatch):
        """A failed forecast exits 1 and is logged as failed, never completed."""
        for env_var in API_KEY_ENV_VARS:
            monkeypatch.delenv(env_var, raising=False)
        logger = EngineLogger(name="civic_triage.test")
        args = Namespace(lat=None, lon=None)

        with patch.object(logger, "info", wraps=logger.info) as info:
            assert await run_predict(args, EngineConfig(), logger) == 1

        messages = [call.args[0] for call in info.call_args_list]
        assert not any(m.startswith("Completed predictions") for m in messages)
        assert any(e["message"].startswith("Failed predictions") for e in logger.get_error_summary()["errors"])
