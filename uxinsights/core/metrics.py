# ==============================================================================
# Metrics Aggregator - Pure Domain Logic
# ==============================================================================
"""
Aggregate scalar metrics over classified sessions, events and block answers.

Every function is independent and side-effect free. Empty inputs produce 0
rather than NaN, and the median uses the lower-median index ``n // 2`` of the
sorted values (for ``[1, 2, 3, 4]`` that is 3).
"""

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import BaseModel, Field

from uxinsights.core.models import (
    TERMINAL_TYPES,
    BlockResponse,
    Event,
    EventType,
    SessionOutcome,
    SessionStatus,
)
from uxinsights.core.session_classifier import sort_events

# ==============================================================================
# Session outcomes
# ==============================================================================


def outcome_counts(outcomes: Iterable[SessionOutcome]) -> dict[str, int]:
    """Number of sessions per status; every status key is present."""
    counts = {status.value: 0 for status in SessionStatus}
    for outcome in outcomes:
        counts[outcome.status.value] += 1
    return counts


def _rate(outcomes: Iterable[SessionOutcome], status: SessionStatus) -> float:
    outcomes = list(outcomes)
    if not outcomes:
        return 0.0
    return sum(1 for o in outcomes if o.status == status) / len(outcomes)


def completion_rate(outcomes: Iterable[SessionOutcome]) -> float:
    """completed / total, 0 when there are no sessions."""
    return _rate(outcomes, SessionStatus.COMPLETED)


def abandon_rate(outcomes: Iterable[SessionOutcome]) -> float:
    """aborted / total, 0 when there are no sessions."""
    return _rate(outcomes, SessionStatus.ABORTED)


def close_rate(outcomes: Iterable[SessionOutcome]) -> float:
    """closed / total, 0 when there are no sessions."""
    return _rate(outcomes, SessionStatus.CLOSED)


def elapsed_values(
    outcomes: Iterable[SessionOutcome], status: SessionStatus | None = SessionStatus.COMPLETED
) -> list[float]:
    """Elapsed seconds of sessions with the given status (all when None)."""
    return [
        o.elapsed_seconds
        for o in outcomes
        if o.elapsed_seconds is not None and (status is None or o.status == status)
    ]


# ==============================================================================
# Time statistics
# ==============================================================================


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def mean_seconds(values: Sequence[float]) -> float:
    """Arithmetic mean, 0 on an empty list."""
    return _mean(values)


def median_seconds(values: Sequence[float]) -> float:
    """Lower median: element ``n // 2`` of the ascending-sorted values."""
    if not values:
        return 0.0
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


class ScreenTime(BaseModel):
    screen_id: str
    total_ms: int
    visit_count: int

    @property
    def mean_ms(self) -> int:
        return self.total_ms // self.visit_count if self.visit_count else 0


def screen_times(events_by_session: Mapping[str, Iterable[Event]]) -> list[ScreenTime]:
    """
    Dwell time per screen.

    Each screen_load lasts until the next screen_load of the same session, or
    until the session's last event for the final one. Durations are never
    negative.

    Returns:
        ScreenTime per screen, sorted by total time, longest first
    """
    totals: dict[str, list[int]] = {}
    for events in events_by_session.values():
        ordered = sort_events(events)
        if not ordered:
            continue
        last_ts = ordered[-1].timestamp
        loads = [e for e in ordered if e.kind == EventType.SCREEN_LOAD and e.screen_id]
        for index, load in enumerate(loads):
            end = loads[index + 1].timestamp if index + 1 < len(loads) else last_ts
            entry = totals.setdefault(load.screen_id, [0, 0])
            entry[0] += max(0, end - load.timestamp)
            entry[1] += 1

    result = [
        ScreenTime(screen_id=screen_id, total_ms=total, visit_count=visits)
        for screen_id, (total, visits) in totals.items()
    ]
    result.sort(key=lambda s: s.total_ms, reverse=True)
    return result


def events_by_type(events: Iterable[Event]) -> dict[str, int]:
    """Count recognized events per type; unknown types are ignored."""
    counts = Counter(e.kind.value for e in events if e.kind is not None)
    return dict(counts)


class AbandonedScreens(BaseModel):
    aborted: list[str] = Field(default_factory=list)
    closed: list[str] = Field(default_factory=list)


def abandoned_screens(events_by_session: Mapping[str, Iterable[Event]]) -> AbandonedScreens:
    """
    Screens where sessions were given up.

    For each session only its last terminal event with a screen counts: an
    aborted event marks its screen as aborted, a closed event as closed, a
    completed event marks nothing.
    """
    aborted: set[str] = set()
    closed: set[str] = set()
    for events in events_by_session.values():
        terminal = [e for e in sort_events(events) if e.kind in TERMINAL_TYPES and e.screen_id]
        if not terminal:
            continue
        last = terminal[-1]
        if last.kind == EventType.ABORTED:
            aborted.add(last.screen_id)
        elif last.kind == EventType.CLOSED:
            closed.add(last.screen_id)
    return AbandonedScreens(aborted=sorted(aborted), closed=sorted(closed))


# ==============================================================================
# Block answers
# ==============================================================================


class ScaleSummary(BaseModel):
    histogram: dict[int | float, int] = Field(default_factory=dict)
    mean: float = 0.0
    count: int = 0
    excluded: int = 0


def scale_summary(
    values: Iterable[float | None], min_value: float = 1, max_value: float = 5
) -> ScaleSummary:
    """
    Histogram and mean of scale answers.

    Values outside ``[min_value, max_value]`` are excluded from both the
    histogram and the mean (not clamped). ``None`` means "not answered" and
    is skipped without counting as excluded.
    """
    histogram: dict[float, int] = {v: 0 for v in range(int(min_value), int(max_value) + 1)}
    kept: list[float] = []
    excluded = 0
    for value in values:
        if value is None:
            continue
        if value < min_value or value > max_value:
            excluded += 1
            continue
        histogram[value] = histogram.get(value, 0) + 1
        kept.append(value)
    return ScaleSummary(
        histogram=histogram,
        mean=_mean(kept),
        count=len(kept),
        excluded=excluded,
    )


def scale_values(responses: Iterable[BlockResponse]) -> list[float | None]:
    return [r.answer.get("value") for r in responses if r.block_type == "scale"]


class ChoiceSummary(BaseModel):
    options: dict[str, int] = Field(default_factory=dict)
    other: int = 0
    none: int = 0
    respondents: int = 0


def choice_summary(responses: Iterable[BlockResponse]) -> ChoiceSummary:
    """Option pick counts for choice blocks, plus "other" and "none" tallies."""
    options: Counter = Counter()
    other = none = respondents = 0
    for response in responses:
        if response.block_type != "choice":
            continue
        respondents += 1
        for option in response.answer.get("selected") or []:
            options[str(option)] += 1
        if response.answer.get("other"):
            other += 1
        if response.answer.get("none"):
            none += 1
    return ChoiceSummary(options=dict(options), other=other, none=none, respondents=respondents)


def umux_lite_score(item1: float, item2: float) -> float:
    """UMUX-Lite on a 0-100 scale from two 1-7 items."""
    return ((item1 - 1) + (item2 - 1)) / 12 * 100


def sus_equivalent(item1: float, item2: float) -> float:
    """SUS-comparable score derived from the UMUX-Lite items."""
    return 0.65 * ((item1 + item2 - 2) * (100 / 12)) + 22.9


class UmuxLiteSummary(BaseModel):
    count: int = 0
    umux_lite_mean: float = 0.0
    sus_mean: float = 0.0


def _umux_items(answer: Mapping[str, Any]) -> tuple[float, float] | None:
    item1, item2 = answer.get("item1"), answer.get("item2")
    if not isinstance(item1, (int, float)) or not isinstance(item2, (int, float)):
        return None
    if not (1 <= item1 <= 7 and 1 <= item2 <= 7):
        return None
    return item1, item2


def umux_lite_summary(responses: Iterable[BlockResponse]) -> UmuxLiteSummary:
    """Mean UMUX-Lite and SUS-equivalent scores; invalid answers are skipped."""
    items = [
        pair
        for r in responses
        if r.block_type == "umux_lite" and (pair := _umux_items(r.answer)) is not None
    ]
    return UmuxLiteSummary(
        count=len(items),
        umux_lite_mean=_mean([umux_lite_score(a, b) for a, b in items]),
        sus_mean=_mean([sus_equivalent(a, b) for a, b in items]),
    )


def tree_test_success_rate(responses: Iterable[BlockResponse]) -> float:
    """Share of tree-testing answers marked correct, among answers that carry the flag."""
    flags = [
        bool(r.answer["isCorrect"])
        for r in responses
        if r.block_type == "tree_testing" and r.answer.get("isCorrect") is not None
    ]
    if not flags:
        return 0.0
    return sum(flags) / len(flags)


def _card_name(card: Any) -> str:
    if isinstance(card, Mapping):
        return str(card.get("name") or card.get("title") or card.get("id"))
    return str(card)


def card_sort_matrix(responses: Iterable[BlockResponse]) -> dict[str, dict[str, int]]:
    """How often each card was placed into each category: card -> category -> count."""
    matrix: dict[str, Counter] = {}
    for response in responses:
        if response.block_type != "card_sorting":
            continue
        categories = response.answer.get("categories") or {}
        for category, cards in categories.items():
            if not isinstance(cards, list):
                continue
            for card in cards:
                matrix.setdefault(_card_name(card), Counter())[str(category)] += 1
    return {card: dict(counts) for card, counts in matrix.items()}
