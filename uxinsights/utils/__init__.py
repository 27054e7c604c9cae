# ==============================================================================
# uxinsights Utilities
# ==============================================================================
"""
Shared utilities for the aggregation engine.

This module exports configuration and row loaders for use throughout the
package.
"""

from uxinsights.utils.config import (
    ClassifierSettings,
    FlowGraphSettings,
    HeatmapSettings,
    Settings,
    get_settings,
)
from uxinsights.utils.loaders import (
    REQUIRED_EVENT_FIELDS,
    load_events,
    load_gaze,
    load_responses,
    load_sessions,
    read_rows,
)

__all__ = [
    # Config
    "ClassifierSettings",
    "FlowGraphSettings",
    "HeatmapSettings",
    "Settings",
    "get_settings",
    # Loaders
    "REQUIRED_EVENT_FIELDS",
    "load_events",
    "load_gaze",
    "load_responses",
    "load_sessions",
    "read_rows",
]
