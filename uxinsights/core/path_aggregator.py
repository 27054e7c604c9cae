# ==============================================================================
# Path Aggregator - Pure Domain Logic
# ==============================================================================
"""
Screen navigation paths and transition counts across sessions.

For every session the screen_load events are turned into a deduplicated path
(first visit of each screen kept). Consecutive pairs of those paths feed a
global transition table, and the most common entry screen is elected.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field, field_serializer

from uxinsights.core.models import Event, EventType, SessionOutcome

logger = logging.getLogger(__name__)


def transition_key(from_screen: str, to_screen: str) -> str:
    """String form of a transition, e.g. ``"A->B"``."""
    return f"{from_screen}->{to_screen}"


def dedupe_path(screens: Iterable[str]) -> list[str]:
    """Drop every repeat of a screen id, keeping first occurrences in order."""
    seen: set[str] = set()
    path = []
    for screen in screens:
        if screen in seen:
            continue
        seen.add(screen)
        path.append(screen)
    return path


def raw_screen_sequence(events: Iterable[Event]) -> list[str]:
    """Screen ids of a session's screen_load events, in timestamp order."""
    loads = [e for e in events if e.kind == EventType.SCREEN_LOAD and e.screen_id]
    loads.sort(key=lambda e: e.timestamp)
    return [e.screen_id for e in loads]


class PathAggregate(BaseModel):
    """
    Result of a path aggregation pass.

    Attributes:
        paths_by_session: Deduplicated screen path per session
        transitions: (from, to) -> traversal count over all paths
        common_start_screen: Most frequent entry screen, or None
    """

    paths_by_session: dict[str, list[str]] = Field(default_factory=dict)
    transitions: dict[tuple[str, str], int] = Field(default_factory=dict)
    common_start_screen: str | None = None

    @field_serializer("transitions")
    def _serialize_transitions(self, transitions: dict[tuple[str, str], int]) -> dict[str, int]:
        return {transition_key(a, b): count for (a, b), count in transitions.items()}

    @property
    def max_transition_count(self) -> int:
        return max(self.transitions.values(), default=0)

    def graph_paths(self, outcomes: Mapping[str, SessionOutcome]) -> dict[str, list[str]]:
        """
        Paths used for graph construction.

        Sessions that ended (aborted/closed) before any screen loaded are
        placed on the common start screen so they are not orphaned. The
        transition table is not affected.

        Args:
            outcomes: Classified outcome per session id

        Returns:
            New mapping of session id to path
        """
        paths = {sid: list(path) for sid, path in self.paths_by_session.items()}
        if self.common_start_screen is None:
            return paths
        for session_id, outcome in outcomes.items():
            if paths.get(session_id) or not outcome.is_terminal:
                continue
            paths[session_id] = [self.common_start_screen]
        return paths


class PathAggregator:
    """Builds deduplicated paths and the transition table for a set of sessions."""

    def aggregate(self, sessions: Mapping[str, Iterable[Event]]) -> PathAggregate:
        """
        Aggregate navigation paths.

        Args:
            sessions: Mapping of session id to its events. Only screen_load
                      events are read, so full event lists can be passed.

        Returns:
            PathAggregate with paths, transitions and the common start screen
        """
        paths: dict[str, list[str]] = {}
        transitions: Counter = Counter()
        start_votes: Counter = Counter()
        first_seen: dict[str, int] = {}

        for session_id, events in sessions.items():
            raw = raw_screen_sequence(events)
            path = dedupe_path(raw)
            paths[session_id] = path

            for pair in zip(path, path[1:]):
                transitions[pair] += 1

            if raw:
                start_votes[raw[0]] += 1
                first_seen.setdefault(raw[0], len(first_seen))

        common_start = None
        if start_votes:
            # Highest vote count, earliest first-seen screen on ties
            common_start = min(start_votes, key=lambda s: (-start_votes[s], first_seen[s]))

        logger.debug(
            "Aggregated %d paths, %d distinct transitions, start=%s",
            len(paths),
            len(transitions),
            common_start,
        )
        return PathAggregate(
            paths_by_session=paths,
            transitions=dict(transitions),
            common_start_screen=common_start,
        )


def aggregate_paths(sessions: Mapping[str, Iterable[Event]]) -> PathAggregate:
    """Module-level shortcut for ``PathAggregator().aggregate``."""
    return PathAggregator().aggregate(sessions)
