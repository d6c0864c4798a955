"""Daily Clarity Pattern Analytics - behavioral patterns from reflection session history."""

from importlib.metadata import version

try:
    __version__ = version("clarity-pattern-analytics")
except Exception:
    __version__ = "0.1.0"  # Fallback for development

# Re-export public API
from clarity_analytics.patterns import (
    EmotionalPatterns,
    PatternReport,
    SessionTrends,
    ThemePatterns,
    TimePatterns,
    ToolUsagePatterns,
    analyze_emotional_patterns,
    analyze_session_trends,
    analyze_theme_patterns,
    analyze_time_patterns,
    analyze_tool_usage_patterns,
    generate_full_report,
)
from clarity_analytics.records import InvalidRecordError, SessionRecord, TrainingAnnotation

__all__ = [
    # Version
    "__version__",
    # Records
    "SessionRecord",
    "TrainingAnnotation",
    "InvalidRecordError",
    # Analyzers
    "analyze_time_patterns",
    "analyze_theme_patterns",
    "analyze_emotional_patterns",
    "analyze_tool_usage_patterns",
    "analyze_session_trends",
    "generate_full_report",
    # Results
    "TimePatterns",
    "ThemePatterns",
    "EmotionalPatterns",
    "ToolUsagePatterns",
    "SessionTrends",
    "PatternReport",
]
