# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure result-aggregation logic with no I/O.

This module contains:
- Domain models (Event, SessionRecord, SessionOutcome, HeatPoint, ...)
- Session classification, path aggregation and the flow graph
- Click/gaze collection and heatmap rasterization
- Aggregate metrics and the per-block report

All code here is deterministic and easily unit-testable.
"""

from uxinsights.core.flow_graph import FlowEdge, FlowGraph, FlowGraphData, FlowNode
from uxinsights.core.heatmap import HeatmapRasterizer, render_screen_heatmap
from uxinsights.core.models import (
    BlockResponse,
    ClickMarker,
    Event,
    EventType,
    GazeSample,
    HeatPoint,
    Hotspot,
    SessionOutcome,
    SessionRecord,
    SessionStatus,
)
from uxinsights.core.path_aggregator import PathAggregate, PathAggregator
from uxinsights.core.report import BlockReport, build_block_report
from uxinsights.core.session_classifier import SessionClassifier, classify

__all__ = [
    "BlockReport",
    "BlockResponse",
    "ClickMarker",
    "Event",
    "EventType",
    "FlowEdge",
    "FlowGraph",
    "FlowGraphData",
    "FlowNode",
    "GazeSample",
    "HeatPoint",
    "HeatmapRasterizer",
    "Hotspot",
    "PathAggregate",
    "PathAggregator",
    "SessionClassifier",
    "SessionOutcome",
    "SessionRecord",
    "SessionStatus",
    "build_block_report",
    "classify",
    "render_screen_heatmap",
]
