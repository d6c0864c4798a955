"""Input record types for pattern analytics."""

from dataclasses import dataclass

from clarity_analytics.stats import MAX_TIMESTAMP_MS, MIN_TIMESTAMP_MS

# Tool ids known to the app, mapped to their display names
TOOL_NAMES: dict[str, str] = {
    "mind-dump": "Mind Dump",
    "find-words": "Find Words",
    "decision-helper": "Decision Helper",
    "write-hard": "Write The Hard Thing",
    "quick-reset": "Quick Reset",
}


class InvalidRecordError(ValueError):
    """Raised when a record is missing a required field or carries a bad value."""


def tool_display_name(tool_id: str) -> str:
    """Return the display name for a tool id, falling back to the id itself."""
    return TOOL_NAMES.get(tool_id, tool_id)


def _check_timestamp(value, field_name: str) -> None:
    # bool is an int subclass, reject it explicitly
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRecordError(
            f"{field_name} must be an integer epoch-millis value, got {value!r}"
        )
    if not MIN_TIMESTAMP_MS <= value <= MAX_TIMESTAMP_MS:
        raise InvalidRecordError(f"{field_name} is out of range: {value}")


@dataclass(frozen=True)
class SessionRecord:
    """One logged interaction with a tool.

    Immutable. Validated on construction: a record without an integer
    timestamp or a tool id is rejected with InvalidRecordError.
    """

    id: str
    tool_id: str
    input: str
    output: str
    timestamp: int  # epoch millis
    theme: str | None = None
    emotion: str | None = None
    helpful_rating: int | None = None  # 1-5

    def __post_init__(self):
        """Validate required fields and normalize empty classifications."""
        _check_timestamp(self.timestamp, "timestamp")
        if not self.tool_id or not isinstance(self.tool_id, str):
            raise InvalidRecordError(f"tool_id is required, got {self.tool_id!r}")
        if self.helpful_rating is not None:
            if isinstance(self.helpful_rating, bool) or not isinstance(self.helpful_rating, int):
                raise InvalidRecordError(
                    f"helpful_rating must be an integer, got {self.helpful_rating!r}"
                )
            if not 1 <= self.helpful_rating <= 5:
                raise InvalidRecordError(
                    f"helpful_rating must be between 1 and 5, got {self.helpful_rating}"
                )
        # Empty strings carry no classification
        if self.theme == "":
            object.__setattr__(self, "theme", None)
        if self.emotion == "":
            object.__setattr__(self, "emotion", None)


@dataclass(frozen=True)
class TrainingAnnotation:
    """Structured pre-launch feedback on a single conversation."""

    conversation_id: str
    what_i_needed: str
    what_was_helpful: str
    what_was_missing: str
    emotional_accuracy: int  # 1-5
    would_use_again: bool
    additional_notes: str | None = None
    tool_id: str | None = None
    created_at: int | None = None  # epoch millis

    def __post_init__(self):
        if not self.conversation_id:
            raise InvalidRecordError("conversation_id is required")
        if isinstance(self.emotional_accuracy, bool) or not isinstance(
            self.emotional_accuracy, int
        ):
            raise InvalidRecordError(
                f"emotional_accuracy must be an integer, got {self.emotional_accuracy!r}"
            )
        if not 1 <= self.emotional_accuracy <= 5:
            raise InvalidRecordError(
                f"emotional_accuracy must be between 1 and 5, got {self.emotional_accuracy}"
            )
        if self.created_at is not None:
            _check_timestamp(self.created_at, "created_at")
