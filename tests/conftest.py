"""Pytest configuration and shared fixtures."""

import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from clarity_analytics.records import SessionRecord


def utc_ms(year, month, day, hour=0, minute=0) -> int:
    """Epoch millis for a UTC wall-clock time."""
    return int(datetime(year, month, day, hour, minute, tzinfo=timezone.utc).timestamp() * 1000)


@pytest.fixture
def make_record():
    """Factory for session records with sensible defaults.

    Only timestamp is required; everything else can be overridden.
    """
    counter = {"n": 0}

    def _make(timestamp: int, tool_id: str = "mind-dump", **kwargs) -> SessionRecord:
        counter["n"] += 1
        return SessionRecord(
            id=kwargs.pop("id", f"session-{counter['n']}"),
            tool_id=tool_id,
            input=kwargs.pop("input", "Everything feels like too much today"),
            output=kwargs.pop("output", "Let's sort this into a few groups."),
            timestamp=timestamp,
            **kwargs,
        )

    return _make


@pytest.fixture
def sample_history(make_record):
    """Four weeks of sessions from a user with a recurring work-stress pattern.

    Contains:
    - 6 sessions, five on Mondays (Jan 8/15/22/29 2024) and one Tuesday (Jan 30)
    - Themes: work x4, relationships x1, one untagged
    - Emotions: overwhelmed x2, anxious x2, stuck x1, one untagged
    - Ratings: 4, 5, 3, 5, 4, unrated
    - Tools: mind-dump x3, decision-helper, write-hard, find-words
    """
    return [
        make_record(
            utc_ms(2024, 1, 8, 9, 30),
            "mind-dump",
            theme="work",
            emotion="overwhelmed",
            helpful_rating=4,
        ),
        make_record(
            utc_ms(2024, 1, 8, 14, 20),
            "decision-helper",
            theme="work",
            emotion="anxious",
            helpful_rating=5,
        ),
        make_record(
            utc_ms(2024, 1, 15, 8, 15),
            "mind-dump",
            theme="work",
            emotion="overwhelmed",
            helpful_rating=3,
        ),
        make_record(
            utc_ms(2024, 1, 22, 16, 45),
            "write-hard",
            theme="work",
            emotion="anxious",
            helpful_rating=5,
        ),
        make_record(
            utc_ms(2024, 1, 29, 19, 0),
            "find-words",
            theme="relationships",
            emotion="stuck",
            helpful_rating=4,
        ),
        make_record(utc_ms(2024, 1, 30, 9, 10), "mind-dump"),
    ]


@pytest.fixture
def history_entries():
    """Raw history entries in both supported shapes."""
    return [
        {
            "id": "c1",
            "tool_type": "mind-dump",
            "user_input": "I have this presentation on Friday and nothing feels good enough",
            "ai_response": "Let's group what's on your mind.",
            "theme": "work",
            "mood_before": "overwhelmed",
            "helpful_rating": 4,
            "created_at": "2024-01-08T09:30:00Z",
        },
        {
            "id": "c2",
            "tool_type": "decision-helper",
            "user_input": "Should I ask for help with this project?",
            "ai_response": "Here is what you're weighing.",
            "theme": "work",
            "mood_before": "anxious",
            "helpful_rating": 5,
            "created_at": "2024-01-09T14:20:00+00:00",
        },
        {
            "id": "r3",
            "toolId": "find-words",
            "input": "How do I say no to my friend?",
            "output": "Here's a kind way to put it.",
            "timestamp": utc_ms(2024, 1, 10, 19, 0),
            "theme": "relationships",
            "emotion": "stuck",
            "helpfulRating": 4,
        },
    ]


@pytest.fixture
def history_file(history_entries):
    """A JSONL history file holding the sample entries."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "history.jsonl"
        path.write_text("\n".join(json.dumps(e) for e in history_entries) + "\n")
        yield path


@pytest.fixture
def annotation_entries():
    """Raw training annotation rows as exported with their conversations."""
    return [
        {
            "conversation_id": "c1",
            "what_i_needed": "To feel less alone with the deadline",
            "what_was_helpful": "Breaking it into steps",
            "what_was_missing": "Concrete examples",
            "emotional_accuracy": 4,
            "would_use_again": True,
            "created_at": "2024-01-08T10:00:00Z",
            "conversations": {"tool_type": "mind-dump"},
        },
        {
            "conversation_id": "c2",
            "what_i_needed": "Permission to ask for help",
            "what_was_helpful": "Seeing both sides",
            "what_was_missing": "Concrete examples",
            "emotional_accuracy": 3,
            "would_use_again": True,
            "additional_notes": "Felt a bit generic",
            "created_at": "2024-01-09T15:00:00Z",
            "conversations": {"tool_type": "decision-helper"},
        },
        {
            "conversation_id": "c3",
            "what_i_needed": "The right words",
            "what_was_helpful": "Breaking it into steps",
            "what_was_missing": "",
            "emotional_accuracy": 5,
            "would_use_again": False,
            "tool_type": "find-words",
        },
    ]


@pytest.fixture
def annotations_file(annotation_entries):
    """A JSON-array annotation export file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "training_annotations.json"
        path.write_text(json.dumps(annotation_entries))
        yield path
