# ==============================================================================
# Study Result Domain Models
# ==============================================================================
"""
Pydantic models for study telemetry and derived results.

These models are used for:
- Validating event and session rows handed over by the data-fetch layer
- Carrying derived results (outcomes, heat points, overlay markers)
- Serializing reports to JSON for the reporting UI

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventType(str, Enum):
    """Event types recorded by the prototype viewer."""

    SCREEN_LOAD = "screen_load"
    CLICK = "click"
    HOTSPOT_CLICK = "hotspot_click"
    COMPLETED = "completed"
    ABORTED = "aborted"
    CLOSED = "closed"
    SCROLL = "scroll"


CLICK_TYPES = frozenset({EventType.CLICK, EventType.HOTSPOT_CLICK})
TERMINAL_TYPES = frozenset({EventType.COMPLETED, EventType.ABORTED, EventType.CLOSED})


class SessionStatus(str, Enum):
    """Classified state of one session."""

    COMPLETED = "completed"
    ABORTED = "aborted"
    CLOSED = "closed"
    IN_PROGRESS = "in_progress"


def to_epoch_ms(value: Any) -> Any:
    """Normalize a timestamp to Unix epoch milliseconds.

    Accepts ints/floats (already ms), ``datetime`` objects and ISO-8601
    strings. Naive datetimes are treated as UTC. Anything else is passed
    through so pydantic reports the type error.
    """
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
        value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(round(value.timestamp() * 1000))
    if isinstance(value, float):
        return int(round(value))
    return value


class Event(BaseModel):
    """
    A single telemetry event from one session.

    Attributes:
        session_id: Session the event belongs to
        run_id: Respondent run the session belongs to
        block_id: Study block the session belongs to
        screen_id: Screen the respondent was on (nullable)
        event_type: Raw event type string; unknown types are kept as-is
        timestamp: Unix timestamp in milliseconds
        x: Click X in screen pixel space (nullable)
        y: Click Y in screen pixel space (nullable)
        hotspot_id: Hotspot hit by a hotspot_click (nullable)
    """

    model_config = ConfigDict(frozen=True)

    session_id: str = Field(..., description="Session identifier")
    run_id: str | None = Field(None, description="Run identifier")
    block_id: str | None = Field(None, description="Block identifier")
    screen_id: str | None = Field(None, description="Screen identifier (nullable)")
    event_type: str = Field(..., description="Event type")
    timestamp: int = Field(..., description="Unix timestamp in milliseconds")
    x: float | None = Field(None, description="X coordinate in pixels (nullable)")
    y: float | None = Field(None, description="Y coordinate in pixels (nullable)")
    hotspot_id: str | None = Field(None, description="Hotspot identifier (nullable)")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        return to_epoch_ms(value)

    @property
    def kind(self) -> EventType | None:
        """Recognized event type, or None for types this engine does not know."""
        try:
            return EventType(self.event_type)
        except ValueError:
            return None

    @property
    def has_coordinates(self) -> bool:
        return self.x is not None and self.y is not None


class GazeSample(BaseModel):
    """A normalized gaze sample; coordinates are in [0, 1] of the screen."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    screen_id: str | None = None
    timestamp: int
    x_norm: float
    y_norm: float

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, value: Any) -> Any:
        return to_epoch_ms(value)


class SessionRecord(BaseModel):
    """
    One respondent's attempt at one prototype block.

    The stored ``completed``/``aborted`` flags are only a fallback used when a
    session has no events at all.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Session identifier")
    run_id: str | None = Field(None, description="Run identifier")
    block_id: str | None = Field(None, description="Block identifier")
    started_at: int | None = Field(None, description="Start time, Unix ms (nullable)")
    completed: bool | None = Field(None, description="Stored completed flag")
    aborted: bool | None = Field(None, description="Stored aborted flag")

    @field_validator("started_at", mode="before")
    @classmethod
    def _parse_started_at(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return to_epoch_ms(value)


class SessionOutcome(BaseModel):
    """Derived, per-pass classification of a session."""

    model_config = ConfigDict(frozen=True)

    status: SessionStatus
    elapsed_seconds: float | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status != SessionStatus.IN_PROGRESS


class HeatPoint(BaseModel):
    """A weighted 2-D sample in the target raster's coordinate space."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    weight: float = 1.0
    is_fallback: bool = False
    session_id: str | None = None


class ClickMarker(BaseModel):
    """One discrete marker of a click-order overlay."""

    model_config = ConfigDict(frozen=True)

    order: int
    x: float
    y: float
    count: float
    size: float
    opacity: float
    is_fallback: bool = False


class Hotspot(BaseModel):
    """Clickable area of a prototype screen, in screen pixels."""

    model_config = ConfigDict(frozen=True)

    id: str
    frame: str
    x: float
    y: float
    w: float
    h: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.w / 2, self.y + self.h / 2


class BlockResponse(BaseModel):
    """A typed answer to one non-prototype study block."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    block_id: str
    block_type: str
    answer: dict[str, Any] = Field(default_factory=dict)
