"""Shared test fixtures and configuration.

Sets up fake environment variables so src.config doesn't sys.exit(),
and provides temp-file SQLite stores and a service pinned to a fixed day.
"""

import os

# Patch env vars BEFORE any src imports
os.environ.setdefault("LINE_CHANNEL_ACCESS_TOKEN", "fake-token-for-tests")
os.environ.setdefault("LINE_CHANNEL_SECRET", "fake-secret-for-tests")

from datetime import date

import pytest

# Wednesday; its week runs Sun 2025-01-12 .. Sat 2025-01-18
FIXED_TODAY = date(2025, 1, 15)


@pytest.fixture
def tmp_db_path(tmp_path):
    """Return a temporary SQLite DB path."""
    return str(tmp_path / "test_activities.db")


@pytest.fixture
def activity_db(tmp_db_path):
    from src.data.db import ActivityDB
    return ActivityDB(db_path=tmp_db_path)


@pytest.fixture
def group_db(tmp_db_path):
    from src.data.db import GroupDB
    return GroupDB(db_path=tmp_db_path)


@pytest.fixture
def activity_service(activity_db):
    """ActivityService whose "today" is always FIXED_TODAY."""
    from src.core.activity_service import ActivityService
    return ActivityService(activity_db, clock=lambda: FIXED_TODAY)


@pytest.fixture
def settings(tmp_db_path):
    from src.config import Settings
    return Settings(
        LINE_CHANNEL_ACCESS_TOKEN="fake-token",
        LINE_CHANNEL_SECRET="test-secret",
        AUTHORIZED_USER_IDS=["U-admin"],
        CRON_API_KEY="cron-key",
        DATABASE_PATH=tmp_db_path,
        GROUP_SEND_DELAY_SECONDS=0,
    )
