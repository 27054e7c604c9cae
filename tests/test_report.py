# ==============================================================================
# Tests for the Block Report - report.py
# ==============================================================================
"""
End-to-end tests of a full aggregation pass over a small prototype block.
"""

import pytest

from uxinsights.core.models import SessionStatus
from uxinsights.core.report import build_block_report, group_events
from uxinsights.utils.config import ClassifierSettings, Settings

BLOCK_ID = "block-x"
SAMPLE_NOW = 1_000_000

# ==============================================================================
# build_block_report
# ==============================================================================


class TestBuildBlockReport:
    def test_three_session_scenario(self, sample_sessions, sample_events):
        report = build_block_report(BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW)

        assert report.paths.transitions == {("S1", "S2"): 2, ("S2", "S3"): 1}
        assert report.paths.common_start_screen == "S1"
        assert report.summary.outcome_counts == {
            "completed": 1,
            "aborted": 1,
            "closed": 1,
            "in_progress": 0,
        }

    def test_other_blocks_ignored(self, sample_sessions, sample_events):
        report = build_block_report(BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW)
        assert set(report.outcomes) == {"s1", "s2", "s3"}
        assert report.summary.sessions == 3
        assert "S9" not in str(report.paths.paths_by_session)

    def test_summary_times_use_completed_sessions(self, sample_sessions, sample_events):
        report = build_block_report(BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW)
        assert report.outcomes["s1"].elapsed_seconds == pytest.approx(10.0)
        assert report.summary.mean_seconds == pytest.approx(10.0)
        assert report.summary.median_seconds == pytest.approx(10.0)
        assert report.summary.completion_rate == pytest.approx(1 / 3)

    def test_event_counts(self, sample_sessions, sample_events):
        report = build_block_report(BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW)
        assert report.summary.events_by_type == {
            "screen_load": 6,
            "click": 2,
            "hotspot_click": 1,
            "completed": 1,
            "aborted": 1,
        }

    def test_flow_graph(self, sample_sessions, sample_events):
        report = build_block_report(BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW)
        assert sum(1 for n in report.flow.nodes if n.is_start) == 1
        statuses = {e.session_id: e.status for e in report.flow.edges}
        assert statuses == {
            "s1": SessionStatus.COMPLETED,
            "s2": SessionStatus.ABORTED,
            "s3": SessionStatus.CLOSED,
        }

    def test_dwell_and_abandonment(self, sample_sessions, sample_events):
        report = build_block_report(BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW)
        assert report.screen_times[0].screen_id == "S3"
        s1 = next(st for st in report.screen_times if st.screen_id == "S1")
        assert s1.total_ms == 5_000
        assert s1.visit_count == 3
        assert report.abandoned_screens.aborted == ["S2"]
        assert report.abandoned_screens.closed == []

    def test_clicks_bucketed_per_screen(self, sample_sessions, sample_events):
        report = build_block_report(BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW)
        (s1_bucket,) = report.clicks["S1"]
        assert (s1_bucket.x, s1_bucket.y, s1_bucket.weight) == (100, 200, 2.0)
        (s2_point,) = report.clicks["S2"]
        assert s2_point.is_fallback

    def test_fallback_clicks_use_screen_size(self, sample_sessions, sample_events):
        report = build_block_report(
            BLOCK_ID,
            sample_sessions,
            sample_events,
            SAMPLE_NOW,
            screen_sizes={"S2": (390, 844)},
        )
        (s2_point,) = report.clicks["S2"]
        assert (s2_point.x, s2_point.y) == (200, 420)
        assert s2_point.is_fallback is True

    def test_settings_override(self, sample_sessions, sample_events):
        settings = Settings(classifier=ClassifierSettings(inactivity_timeout_ms=10_000_000))
        report = build_block_report(
            BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW, settings=settings
        )
        assert report.outcomes["s3"].status == SessionStatus.IN_PROGRESS

    def test_recomputed_on_every_call(self, sample_sessions, sample_events):
        first = build_block_report(BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW)
        second = build_block_report(BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW)
        assert first == second

    def test_json_dump(self, sample_sessions, sample_events):
        report = build_block_report(BLOCK_ID, sample_sessions, sample_events, SAMPLE_NOW)
        dumped = report.model_dump(mode="json")
        assert dumped["paths"]["transitions"] == {"S1->S2": 2, "S2->S3": 1}
        assert dumped["outcomes"]["s3"]["status"] == "closed"

    def test_empty_block(self, sample_sessions, sample_events):
        report = build_block_report("missing", sample_sessions, sample_events, SAMPLE_NOW)
        assert report.summary.sessions == 0
        assert report.summary.completion_rate == 0.0
        assert report.paths.common_start_screen is None
        assert report.flow.edges == []


class TestGroupEvents:
    def test_keeps_order_within_session(self, sample_events):
        grouped = group_events(sample_events)
        assert [e.timestamp for e in grouped["s2"]] == [0, 1_500, 3_000, 6_000]
