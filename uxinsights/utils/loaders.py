# ==============================================================================
# Row Loaders
# ==============================================================================
"""
Loads exported event, session, gaze and response rows from disk.

Supports CSV and newline-delimited JSON (``.jsonl`` / ``.ndjson``) exports of
the event store. Files are read with polars, then every row is validated into
its pydantic model. Rows that fail validation are logged and skipped so one
bad row never hides a whole study.
"""

import json
import logging
from pathlib import Path
from typing import TypeVar

import polars as pl
from pydantic import BaseModel, ValidationError

from uxinsights.core.models import BlockResponse, Event, GazeSample, SessionRecord

logger = logging.getLogger(__name__)

REQUIRED_EVENT_FIELDS = ["session_id", "event_type", "timestamp"]
REQUIRED_SESSION_FIELDS = ["id"]

ModelT = TypeVar("ModelT", bound=BaseModel)


def read_rows(path: str | Path) -> list[dict]:
    """
    Read a CSV or NDJSON file into plain dict rows.

    CSV columns are read as strings and left to pydantic for coercion, so
    empty cells become None rather than being guessed into a dtype.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file extension is not supported
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        df = pl.read_csv(path, infer_schema_length=0)
    elif suffix in (".jsonl", ".ndjson"):
        df = pl.read_ndjson(path)
    else:
        raise ValueError(f"Unsupported file type '{suffix}' (expected .csv, .jsonl or .ndjson)")
    return df.to_dicts()


def _validate_rows(
    rows: list[dict], model: type[ModelT], required: list[str], source: Path
) -> list[ModelT]:
    items = []
    skipped = 0
    for index, row in enumerate(rows):
        if not all(row.get(field) not in (None, "") for field in required):
            skipped += 1
            continue
        try:
            items.append(model.model_validate(row))
        except ValidationError as e:
            skipped += 1
            logger.warning("%s row %d skipped: %s", source.name, index + 1, e.errors()[0]["msg"])
    if skipped:
        logger.warning("%s: skipped %d of %d rows", source.name, skipped, len(rows))
    logger.info("Loaded %d %s rows from %s", len(items), model.__name__, source)
    return items


def load_events(path: str | Path) -> list[Event]:
    """Load event rows (session_id, event_type, timestamp, screen_id, x, y, ...)."""
    path = Path(path)
    return _validate_rows(read_rows(path), Event, REQUIRED_EVENT_FIELDS, path)


def load_sessions(path: str | Path) -> list[SessionRecord]:
    """Load session rows (id, run_id, block_id, started_at, completed, aborted)."""
    path = Path(path)
    return _validate_rows(read_rows(path), SessionRecord, REQUIRED_SESSION_FIELDS, path)


def load_gaze(path: str | Path) -> list[GazeSample]:
    """Load normalized gaze samples (session_id, screen_id, timestamp, x_norm, y_norm)."""
    path = Path(path)
    return _validate_rows(
        read_rows(path), GazeSample, ["session_id", "timestamp", "x_norm", "y_norm"], path
    )


def load_responses(path: str | Path) -> list[BlockResponse]:
    """
    Load block answer rows (run_id, block_id, block_type, answer).

    In CSV exports the ``answer`` column holds a JSON object string.
    """
    path = Path(path)
    rows = read_rows(path)
    for row in rows:
        answer = row.get("answer")
        if isinstance(answer, str):
            try:
                row["answer"] = json.loads(answer) if answer else {}
            except json.JSONDecodeError:
                row["answer"] = {"text": answer}
    return _validate_rows(rows, BlockResponse, ["run_id", "block_id", "block_type"], path)
