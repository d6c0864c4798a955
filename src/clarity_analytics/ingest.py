"""History file loading for pattern analytics.

Reads exported session history and training annotations from JSON or JSONL
files into validated records. Malformed entries are logged and skipped so one
bad line does not block analysis of the rest.
"""

import json
import logging
import os
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

from clarity_analytics.records import InvalidRecordError, SessionRecord, TrainingAnnotation
from clarity_analytics.stats import to_epoch_ms

logger = logging.getLogger("clarity-analytics")

DEFAULT_DATA_DIR = Path.home() / ".daily-clarity"
DEFAULT_HISTORY_PATH = Path(
    os.environ.get("CLARITY_ANALYTICS_HISTORY", DEFAULT_DATA_DIR / "history.jsonl")
)
DEFAULT_ANNOTATIONS_PATH = Path(
    os.environ.get(
        "CLARITY_ANALYTICS_ANNOTATIONS", DEFAULT_DATA_DIR / "training_annotations.jsonl"
    )
)

HISTORY_SUFFIXES = (".json", ".jsonl")

# Fractional seconds of any length; fromisoformat on 3.10 only takes 3 or 6 digits
_FRACTION_RE = re.compile(r"\.(\d+)")


def _pad_fraction(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_timestamp(value) -> int:
    """Normalize a timestamp field to epoch millis.

    Accepts epoch millis (int) or an ISO-8601 string; a trailing 'Z' and
    naive strings are read as UTC.
    """
    if isinstance(value, bool):
        raise InvalidRecordError(f"Invalid timestamp: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            text = _FRACTION_RE.sub(_pad_fraction, value.replace("Z", "+00:00"), count=1)
            return to_epoch_ms(datetime.fromisoformat(text))
        except ValueError as e:
            raise InvalidRecordError(f"Could not parse timestamp: {value!r}") from e
    raise InvalidRecordError(f"Missing or invalid timestamp: {value!r}")


def parse_entry(raw: dict) -> SessionRecord:
    """Parse one history entry into a SessionRecord.

    Two shapes are understood: app-style records (toolId, timestamp in millis)
    and conversation export rows (tool_type, created_at, mood_before).

    Raises:
        InvalidRecordError: if the entry lacks a timestamp or tool id
    """
    if not isinstance(raw, dict):
        raise InvalidRecordError(f"Entry must be an object, got {type(raw).__name__}")

    if "toolId" in raw or "timestamp" in raw:
        return SessionRecord(
            id=str(raw.get("id", "")),
            tool_id=raw.get("toolId"),
            input=raw.get("input") or "",
            output=raw.get("output") or "",
            timestamp=parse_timestamp(raw.get("timestamp")),
            theme=raw.get("theme"),
            emotion=raw.get("emotion"),
            helpful_rating=raw.get("helpfulRating"),
        )

    # Conversation export row
    return SessionRecord(
        id=str(raw.get("id", "")),
        tool_id=raw.get("tool_type"),
        input=raw.get("user_input") or "",
        output=raw.get("ai_response") or "",
        timestamp=parse_timestamp(raw.get("created_at")),
        theme=raw.get("theme"),
        emotion=raw.get("mood_before"),
        helpful_rating=raw.get("helpful_rating"),
    )


def parse_annotation(raw: dict) -> TrainingAnnotation:
    """Parse one training annotation row.

    The tool id may sit at the top level (tool_type) or on the joined
    conversation (conversations.tool_type).
    """
    if not isinstance(raw, dict):
        raise InvalidRecordError(f"Entry must be an object, got {type(raw).__name__}")

    conversation = raw.get("conversations") or {}
    tool_id = raw.get("tool_type") or conversation.get("tool_type")
    created_at = raw.get("created_at")

    return TrainingAnnotation(
        conversation_id=str(raw.get("conversation_id") or ""),
        what_i_needed=raw.get("what_i_needed") or "",
        what_was_helpful=raw.get("what_was_helpful") or "",
        what_was_missing=raw.get("what_was_missing") or "",
        emotional_accuracy=raw.get("emotional_accuracy"),
        would_use_again=bool(raw.get("would_use_again")),
        additional_notes=raw.get("additional_notes"),
        tool_id=tool_id,
        created_at=parse_timestamp(created_at) if created_at is not None else None,
    )


def _iter_raw_entries(file_path: Path):
    """Yield (location, raw_entry_or_error) pairs from a JSON or JSONL file."""
    with open(file_path, encoding="utf-8") as f:
        text = f.read()

    stripped = text.lstrip()
    if stripped.startswith("["):
        try:
            entries = json.loads(text)
        except json.JSONDecodeError as e:
            yield f"{file_path}", e
            return
        for index, entry in enumerate(entries):
            yield f"{file_path}[{index}]", entry
        return

    for line_num, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line:
            continue
        try:
            yield f"{file_path}:{line_num}", json.loads(line)
        except json.JSONDecodeError as e:
            yield f"{file_path}:{line_num}", e


def read_file(file_path: Path, parser=parse_entry) -> dict:
    """Parse every entry in a single history or annotation file.

    Args:
        file_path: JSON array or JSONL file
        parser: Entry parser (parse_entry or parse_annotation)

    Returns:
        Dict with parsed items, entries_processed and errors
    """
    items = []
    entries_processed = 0
    errors = 0

    for location, raw in _iter_raw_entries(file_path):
        if isinstance(raw, json.JSONDecodeError):
            logger.warning(f"JSON parse error in {location}: {raw}")
            errors += 1
            continue

        entries_processed += 1
        try:
            items.append(parser(raw))
        except InvalidRecordError as e:
            logger.warning(f"Skipping invalid entry at {location}: {e}")
            errors += 1

    return {"items": items, "entries_processed": entries_processed, "errors": errors}


def find_history_files(path: Path) -> list[Path]:
    """Resolve a file or directory path to the history files it holds.

    Directories are scanned (non-recursively) for .json/.jsonl files, sorted
    by name for a stable load order.
    """
    if not path.exists():
        logger.warning(f"History path does not exist: {path}")
        return []
    if path.is_file():
        return [path]
    return sorted(p for p in path.iterdir() if p.is_file() and p.suffix in HISTORY_SUFFIXES)


def ingest_history(path: Path = DEFAULT_HISTORY_PATH, days: int | None = None) -> dict:
    """Load session records from a history file or directory.

    Args:
        path: History file, or directory of history files
        days: Only keep records from the last N days (None keeps everything)

    Returns:
        Dict with records (sorted oldest first) plus load stats
    """
    path = Path(path)
    files = find_history_files(path)

    records: list[SessionRecord] = []
    entries_processed = 0
    errors = 0

    for file_path in files:
        try:
            result = read_file(file_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {file_path}: {e}")
            errors += 1
            continue
        records.extend(result["items"])
        entries_processed += result["entries_processed"]
        errors += result["errors"]

    filtered_out = 0
    if days is not None:
        cutoff = to_epoch_ms(datetime.now(timezone.utc) - timedelta(days=days))
        kept = [r for r in records if r.timestamp >= cutoff]
        filtered_out = len(records) - len(kept)
        records = kept

    records.sort(key=lambda r: r.timestamp)

    return {
        "path": str(path),
        "files_found": len(files),
        "entries_processed": entries_processed,
        "records_loaded": len(records),
        "filtered_out": filtered_out,
        "errors": errors,
        "records": records,
    }


def load_history(path: Path = DEFAULT_HISTORY_PATH, days: int | None = None) -> list[SessionRecord]:
    """Load session records, discarding load stats."""
    return ingest_history(path, days=days)["records"]


def load_annotations(path: Path = DEFAULT_ANNOTATIONS_PATH) -> list[TrainingAnnotation]:
    """Load training annotations from a JSON or JSONL export."""
    annotations: list[TrainingAnnotation] = []
    for file_path in find_history_files(Path(path)):
        try:
            result = read_file(file_path, parser=parse_annotation)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {file_path}: {e}")
            continue
        annotations.extend(result["items"])
    return annotations
