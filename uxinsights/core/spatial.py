# ==============================================================================
# Spatial Aggregator - Pure Domain Logic
# ==============================================================================
"""
Click and gaze point collection for a single screen.

Turns raw click events and gaze samples into heat points, groups nearby
clicks onto a grid, builds click-order overlay markers and interpolates the
gaze cursor at an arbitrary time.

Clicks recorded without coordinates are never dropped: they are placed at the
clicked hotspot's center (when its geometry is known) or at the screen center
and flagged ``is_fallback``, so marker counts always match raw event counts.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from uxinsights.core.models import (
    CLICK_TYPES,
    ClickMarker,
    Event,
    GazeSample,
    HeatPoint,
    Hotspot,
)

logger = logging.getLogger(__name__)


def _first_per_session(items: Sequence, session_of) -> list:
    seen: set[str] = set()
    kept = []
    for item in items:
        session_id = session_of(item)
        if session_id in seen:
            continue
        seen.add(session_id)
        kept.append(item)
    return kept


def _fallback_xy(
    event: Event,
    screen_size: tuple[float, float] | None,
    hotspots: Mapping[str, Hotspot] | None,
) -> tuple[float, float]:
    if hotspots and event.hotspot_id:
        hotspot = hotspots.get(event.hotspot_id)
        if hotspot is not None and hotspot.frame == event.screen_id:
            return hotspot.center
    if screen_size is not None:
        return screen_size[0] / 2, screen_size[1] / 2
    return 0.0, 0.0


def collect_clicks(
    events: Iterable[Event],
    screen_id: str,
    only_first_per_session: bool = False,
    screen_size: tuple[float, float] | None = None,
    hotspots: Mapping[str, Hotspot] | None = None,
) -> list[HeatPoint]:
    """
    Collect click points on one screen.

    Args:
        events: Events of any sessions and types
        screen_id: Screen to collect for
        only_first_per_session: Keep only each session's first click on this
                                screen (by timestamp)
        screen_size: (width, height) of the screen, used for the center
                     fallback. Without it the fallback lands on (0, 0).
        hotspots: Hotspot geometry by id, used to place hotspot clicks that
                  lack coordinates

    Returns:
        One HeatPoint of weight 1 per qualifying click event
    """
    clicks = [e for e in events if e.screen_id == screen_id and e.kind in CLICK_TYPES]
    clicks.sort(key=lambda e: e.timestamp)
    if only_first_per_session:
        clicks = _first_per_session(clicks, lambda e: e.session_id)

    points = []
    fallbacks = 0
    for event in clicks:
        if event.has_coordinates:
            points.append(HeatPoint(x=event.x, y=event.y, session_id=event.session_id))
            continue
        x, y = _fallback_xy(event, screen_size, hotspots)
        points.append(HeatPoint(x=x, y=y, is_fallback=True, session_id=event.session_id))
        fallbacks += 1

    if fallbacks:
        logger.debug(
            "Screen %s: %d of %d clicks without coordinates placed at fallback points",
            screen_id,
            fallbacks,
            len(points),
        )
    return points


def collect_gaze(
    samples: Iterable[GazeSample],
    screen_id: str,
    only_first_per_session: bool = False,
) -> list[HeatPoint]:
    """Collect normalized gaze points on one screen; coordinates stay in [0, 1]."""
    selected = [s for s in samples if s.screen_id == screen_id]
    selected.sort(key=lambda s: s.timestamp)
    if only_first_per_session:
        selected = _first_per_session(selected, lambda s: s.session_id)
    return [HeatPoint(x=s.x_norm, y=s.y_norm, session_id=s.session_id) for s in selected]


def denormalize(points: Iterable[HeatPoint], width: float, height: float) -> list[HeatPoint]:
    """Project normalized points onto a screen of the given pixel size."""
    return [p.model_copy(update={"x": p.x * width, "y": p.y * height}) for p in points]


def interpolate_gaze(samples: Sequence[GazeSample], t: int) -> tuple[float, float] | None:
    """
    Gaze position at time ``t``.

    Clamps to the first/last sample outside the recorded range and linearly
    interpolates between the two bracketing samples inside it.

    Args:
        samples: Gaze samples of one session (sorted or not)
        t: Playback time, Unix ms

    Returns:
        (x_norm, y_norm), or None without samples
    """
    if not samples:
        return None
    ordered = sorted(samples, key=lambda s: s.timestamp)
    first, last = ordered[0], ordered[-1]
    if t <= first.timestamp:
        return first.x_norm, first.y_norm
    if t >= last.timestamp:
        return last.x_norm, last.y_norm

    for before, after in zip(ordered, ordered[1:]):
        if before.timestamp <= t <= after.timestamp:
            span = after.timestamp - before.timestamp
            if span == 0:
                return after.x_norm, after.y_norm
            fraction = (t - before.timestamp) / span
            return (
                before.x_norm + (after.x_norm - before.x_norm) * fraction,
                before.y_norm + (after.y_norm - before.y_norm) * fraction,
            )
    return last.x_norm, last.y_norm


def bucket_points(points: Iterable[HeatPoint], cell: int = 10) -> list[HeatPoint]:
    """
    Group points onto a square grid.

    Each point snaps to ``round(v / cell) * cell``; the bucket weight is the
    sum of its points' weights. Fallback points never share a bucket with
    recorded clicks, so a bucket's ``is_fallback`` flag holds for all of its
    points. Buckets keep first-seen order.
    """
    if cell <= 0:
        raise ValueError(f"cell must be positive, got {cell}")
    buckets: dict[tuple[float, float, bool], HeatPoint] = {}
    for point in points:
        key = (round(point.x / cell) * cell, round(point.y / cell) * cell, point.is_fallback)
        current = buckets.get(key)
        if current is None:
            buckets[key] = HeatPoint(
                x=key[0], y=key[1], weight=point.weight, is_fallback=point.is_fallback
            )
        else:
            buckets[key] = current.model_copy(update={"weight": current.weight + point.weight})
    return list(buckets.values())


def click_overlay(points: Sequence[HeatPoint]) -> list[ClickMarker]:
    """
    Discrete click-order markers.

    Markers are numbered in input order (1-based). Size and opacity grow with
    the point's weight relative to the heaviest point.
    """
    max_count = max((p.weight for p in points), default=0.0)
    markers = []
    for order, point in enumerate(points, start=1):
        if max_count > 0:
            ratio = point.weight / max_count
            opacity = min(0.8, 0.3 + ratio * 0.5)
        else:
            ratio = 0.0
            opacity = 0.5
        markers.append(
            ClickMarker(
                order=order,
                x=point.x,
                y=point.y,
                count=point.weight,
                size=max(4.0, min(20.0, 4 + ratio * 16)),
                opacity=opacity,
                is_fallback=point.is_fallback,
            )
        )
    return markers


def clicks_by_screen(events: Iterable[Event]) -> dict[str, list[Event]]:
    """Group click events by screen id, skipping clicks without a screen."""
    grouped: dict[str, list[Event]] = {}
    for event in events:
        if event.kind in CLICK_TYPES and event.screen_id:
            grouped.setdefault(event.screen_id, []).append(event)
    return grouped
