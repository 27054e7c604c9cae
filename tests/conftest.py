# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- A fresh settings cache per test (so env overrides take effect)
- A three-session prototype block used by report and CLI tests
"""

import pytest

from uxinsights.core.models import Event, SessionRecord
from uxinsights.utils.config import get_settings

BLOCK_ID = "block-x"

# Evaluation time far past every event of the sample block
SAMPLE_NOW = 1_000_000


@pytest.fixture(autouse=True)
def fresh_settings():
    """Clear the cached settings before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def sample_sessions() -> list[SessionRecord]:
    """Three sessions on one block plus one session on another block."""
    return [
        SessionRecord(id="s1", run_id="r1", block_id=BLOCK_ID, started_at=0),
        SessionRecord(id="s2", run_id="r2", block_id=BLOCK_ID, started_at=0),
        SessionRecord(id="s3", run_id="r3", block_id=BLOCK_ID, started_at=0),
        SessionRecord(id="other", run_id="r4", block_id="block-y", started_at=0),
    ]


@pytest.fixture()
def sample_events() -> list[Event]:
    """
    Events for the sample block.

    - s1: S1 -> S2 -> S3, completed
    - s2: S1 -> S2, aborted on S2
    - s3: S1 only, then silent (closed by inactivity)
    - other: a session of a different block that must be ignored
    """
    rows = [
        ("s1", "screen_load", 0, "S1", None, None),
        ("s1", "click", 1_000, "S1", 100.0, 200.0),
        ("s1", "screen_load", 2_000, "S2", None, None),
        ("s1", "hotspot_click", 3_000, "S2", None, None),
        ("s1", "screen_load", 4_000, "S3", None, None),
        ("s1", "completed", 10_000, "S3", None, None),
        ("s2", "screen_load", 0, "S1", None, None),
        ("s2", "click", 1_500, "S1", 104.0, 198.0),
        ("s2", "screen_load", 3_000, "S2", None, None),
        ("s2", "aborted", 6_000, "S2", None, None),
        ("s3", "screen_load", 0, "S1", None, None),
        ("other", "screen_load", 0, "S9", None, None),
        ("other", "screen_load", 100, "S1", None, None),
    ]
    return [
        Event(
            session_id=sid,
            run_id=f"r-{sid}",
            block_id=BLOCK_ID if sid != "other" else "block-y",
            event_type=event_type,
            timestamp=ts,
            screen_id=screen,
            x=x,
            y=y,
        )
        for sid, event_type, ts, screen, x, y in rows
    ]
