# ==============================================================================
# Session Classifier - Pure Domain Logic
# ==============================================================================
"""
Terminal outcome classification for prototype sessions.

A session's status is recomputed from its event log on every pass:
- "Last event wins" between completed, aborted and closed, with completed
  winning exact ties
- Sessions that went quiet for longer than the inactivity timeout are
  treated as closed
- The stored completed/aborted flags are only used when no events exist

Everything here is a pure function of its arguments. The wall clock is
passed in as ``now`` (Unix ms) so classification is reproducible.
"""

import logging
from collections.abc import Iterable, Sequence

from uxinsights.core.models import (
    Event,
    EventType,
    SessionOutcome,
    SessionRecord,
    SessionStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_INACTIVITY_TIMEOUT_MS = 60_000


def sort_events(events: Iterable[Event]) -> list[Event]:
    """Return recognized events in timestamp order.

    Unknown event types are dropped. ``sorted`` is stable, so events with
    equal timestamps keep their original relative order.
    """
    return sorted((e for e in events if e.kind is not None), key=lambda e: e.timestamp)


def _first_of(events: Sequence[Event], kind: EventType) -> Event | None:
    for event in events:
        if event.kind == kind:
            return event
    return None


def _elapsed(end_ms: int, start_ms: int | None) -> float | None:
    if start_ms is None:
        return None
    return (end_ms - start_ms) / 1000


def classify(
    events: Iterable[Event],
    now: int,
    inactivity_timeout_ms: int = DEFAULT_INACTIVITY_TIMEOUT_MS,
    stored_completed: bool | None = None,
    stored_aborted: bool | None = None,
    started_at: int | None = None,
) -> SessionOutcome:
    """
    Classify one session from its events.

    Args:
        events: The session's events, in any order
        now: Current time, Unix ms
        inactivity_timeout_ms: Idle time after which a session without a
                               terminal event counts as closed
        stored_completed: Persisted completed flag (used only without events)
        stored_aborted: Persisted aborted flag (used only without events)
        started_at: Session start, Unix ms. Defaults to the first event.

    Returns:
        A fresh SessionOutcome
    """
    ordered = sort_events(events)

    if not ordered:
        if stored_completed:
            status = SessionStatus.COMPLETED
        elif stored_aborted:
            status = SessionStatus.ABORTED
        else:
            status = SessionStatus.IN_PROGRESS
        elapsed = _elapsed(now, started_at) if status == SessionStatus.IN_PROGRESS else None
        return SessionOutcome(status=status, elapsed_seconds=elapsed)

    start = started_at if started_at is not None else ordered[0].timestamp
    completed_evt = _first_of(ordered, EventType.COMPLETED)
    aborted_evt = _first_of(ordered, EventType.ABORTED)
    closed_evt = _first_of(ordered, EventType.CLOSED)
    last_evt = ordered[-1]

    if completed_evt is not None:
        aborted_ts = aborted_evt.timestamp if aborted_evt else 0
        closed_ts = closed_evt.timestamp if closed_evt else 0
        if completed_evt.timestamp >= aborted_ts and completed_evt.timestamp >= closed_ts:
            return SessionOutcome(
                status=SessionStatus.COMPLETED,
                elapsed_seconds=_elapsed(completed_evt.timestamp, start),
            )

    if aborted_evt is not None:
        return SessionOutcome(
            status=SessionStatus.ABORTED,
            elapsed_seconds=_elapsed(aborted_evt.timestamp, start),
        )

    if closed_evt is not None:
        return SessionOutcome(
            status=SessionStatus.CLOSED,
            elapsed_seconds=_elapsed(closed_evt.timestamp, start),
        )

    if last_evt.timestamp < now - inactivity_timeout_ms:
        return SessionOutcome(
            status=SessionStatus.CLOSED,
            elapsed_seconds=_elapsed(last_evt.timestamp, start),
        )

    return SessionOutcome(
        status=SessionStatus.IN_PROGRESS,
        elapsed_seconds=_elapsed(now, start),
    )


class SessionClassifier:
    """
    Classifies sessions against a fixed inactivity timeout.

    Holds configuration only; every call recomputes from the events given.
    """

    def __init__(self, inactivity_timeout_ms: int = DEFAULT_INACTIVITY_TIMEOUT_MS):
        """
        Initialize the classifier.

        Args:
            inactivity_timeout_ms: Idle time in milliseconds after the last
                                   event before a session is inferred closed.
        """
        if inactivity_timeout_ms < 0:
            raise ValueError(f"inactivity_timeout_ms must be >= 0, got {inactivity_timeout_ms}")
        self.inactivity_timeout_ms = inactivity_timeout_ms

    def classify(
        self,
        events: Iterable[Event],
        now: int,
        stored_completed: bool | None = None,
        stored_aborted: bool | None = None,
        started_at: int | None = None,
    ) -> SessionOutcome:
        """Classify a bare event list. See :func:`classify`."""
        return classify(
            events,
            now,
            inactivity_timeout_ms=self.inactivity_timeout_ms,
            stored_completed=stored_completed,
            stored_aborted=stored_aborted,
            started_at=started_at,
        )

    def classify_session(
        self, session: SessionRecord, events: Iterable[Event], now: int
    ) -> SessionOutcome:
        """Classify a session row together with its events."""
        return self.classify(
            events,
            now,
            stored_completed=session.completed,
            stored_aborted=session.aborted,
            started_at=session.started_at,
        )

    def classify_all(
        self,
        sessions: Iterable[SessionRecord],
        events_by_session: dict[str, list[Event]],
        now: int,
    ) -> dict[str, SessionOutcome]:
        """
        Classify many sessions at once.

        Args:
            sessions: Session rows
            events_by_session: Mapping of session id to its events
            now: Current time, Unix ms

        Returns:
            Mapping of session id to SessionOutcome, in session order
        """
        outcomes = {
            session.id: self.classify_session(session, events_by_session.get(session.id, []), now)
            for session in sessions
        }
        logger.debug("Classified %d sessions", len(outcomes))
        return outcomes
