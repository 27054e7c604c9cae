# ==============================================================================
# Block Report - Aggregation Pass
# ==============================================================================
"""
One full aggregation pass for a prototype block.

Composes the classifier, path aggregator, flow graph, spatial aggregator and
metrics into a single serializable report. Nothing is cached: every call
recomputes from the rows it is given.
"""

import logging
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from uxinsights.core import metrics
from uxinsights.core.flow_graph import FlowGraph, FlowGraphData
from uxinsights.core.models import Event, HeatPoint, Hotspot, SessionOutcome, SessionRecord
from uxinsights.core.path_aggregator import PathAggregate, PathAggregator
from uxinsights.core.session_classifier import SessionClassifier
from uxinsights.core.spatial import bucket_points, clicks_by_screen, collect_clicks
from uxinsights.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class BlockSummary(BaseModel):
    """Headline numbers of a block report."""

    sessions: int = 0
    outcome_counts: dict[str, int] = Field(default_factory=dict)
    completion_rate: float = 0.0
    abandon_rate: float = 0.0
    close_rate: float = 0.0
    mean_seconds: float = 0.0
    median_seconds: float = 0.0
    events_by_type: dict[str, int] = Field(default_factory=dict)


class BlockReport(BaseModel):
    block_id: str
    now: int
    summary: BlockSummary
    outcomes: dict[str, SessionOutcome] = Field(default_factory=dict)
    paths: PathAggregate
    flow: FlowGraphData
    screen_times: list[metrics.ScreenTime] = Field(default_factory=list)
    abandoned_screens: metrics.AbandonedScreens
    clicks: dict[str, list[HeatPoint]] = Field(default_factory=dict)


def group_events(events: Iterable[Event]) -> dict[str, list[Event]]:
    """Group events by session id, keeping input order within a session."""
    grouped: dict[str, list[Event]] = {}
    for event in events:
        grouped.setdefault(event.session_id, []).append(event)
    return grouped


def build_block_report(
    block_id: str,
    sessions: Iterable[SessionRecord],
    events: Iterable[Event],
    now: int,
    settings: Settings | None = None,
    screen_sizes: Mapping[str, tuple[float, float]] | None = None,
    hotspots: Mapping[str, Hotspot] | None = None,
) -> BlockReport:
    """
    Run a complete aggregation pass for one block.

    Args:
        block_id: Block to report on; other blocks' rows are ignored
        sessions: Session rows (any blocks)
        events: Event rows (any blocks)
        now: Current time, Unix ms, for inactivity evaluation
        settings: Settings override. Defaults to ``get_settings()``.
        screen_sizes: Screen id to (width, height). Clicks without
                      coordinates land on the screen center when known.
        hotspots: Hotspot id to hotspot, for placing hotspot clicks
                  without coordinates on the hotspot center

    Returns:
        BlockReport for the block
    """
    settings = settings or get_settings()
    screen_sizes = screen_sizes or {}

    block_sessions = [s for s in sessions if s.block_id == block_id]
    session_ids = {s.id for s in block_sessions}
    block_events = [e for e in events if e.session_id in session_ids]
    grouped = group_events(block_events)
    events_by_session = {s.id: grouped.get(s.id, []) for s in block_sessions}

    classifier = SessionClassifier(settings.classifier.inactivity_timeout_ms)
    outcomes = classifier.classify_all(block_sessions, events_by_session, now)
    outcome_list = list(outcomes.values())

    paths = PathAggregator().aggregate(events_by_session)
    flow = FlowGraph(settings.flow.min_width, settings.flow.max_width).build(
        paths.graph_paths(outcomes),
        paths.transitions,
        paths.common_start_screen,
        outcomes,
    )

    elapsed = metrics.elapsed_values(outcome_list)
    summary = BlockSummary(
        sessions=len(block_sessions),
        outcome_counts=metrics.outcome_counts(outcome_list),
        completion_rate=metrics.completion_rate(outcome_list),
        abandon_rate=metrics.abandon_rate(outcome_list),
        close_rate=metrics.close_rate(outcome_list),
        mean_seconds=metrics.mean_seconds(elapsed),
        median_seconds=metrics.median_seconds(elapsed),
        events_by_type=metrics.events_by_type(block_events),
    )

    clicks = {
        screen_id: bucket_points(
            collect_clicks(
                screen_events,
                screen_id,
                screen_size=screen_sizes.get(screen_id),
                hotspots=hotspots,
            ),
            settings.heatmap.bucket_size,
        )
        for screen_id, screen_events in clicks_by_screen(block_events).items()
    }

    logger.info(
        "Block %s: %d sessions, %d events, completion %.1f%%",
        block_id,
        summary.sessions,
        len(block_events),
        summary.completion_rate * 100,
    )
    return BlockReport(
        block_id=block_id,
        now=now,
        summary=summary,
        outcomes=outcomes,
        paths=paths,
        flow=flow,
        screen_times=metrics.screen_times(events_by_session),
        abandoned_screens=metrics.abandoned_screens(events_by_session),
        clicks=clicks,
    )
