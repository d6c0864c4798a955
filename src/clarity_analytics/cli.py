"""Command-line interface for pattern analytics."""

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path

from clarity_analytics.ingest import (
    DEFAULT_ANNOTATIONS_PATH,
    DEFAULT_HISTORY_PATH,
    ingest_history,
    load_annotations,
)
from clarity_analytics.patterns import (
    analyze_emotional_patterns,
    analyze_session_trends,
    analyze_theme_patterns,
    analyze_time_patterns,
    analyze_tool_usage_patterns,
    generate_full_report,
)
from clarity_analytics.records import tool_display_name
from clarity_analytics.stats import to_utc_datetime
from clarity_analytics.training import analyze_training_quality, format_training_report

# Hour blocks for the time-of-day chart: (label, hours)
TIME_BLOCKS: list[tuple[str, range]] = [
    ("Night 12am-4am", range(0, 4)),
    ("Morning 4am-8am", range(4, 8)),
    ("Morning 8am-12pm", range(8, 12)),
    ("Afternoon 12pm-4pm", range(12, 16)),
    ("Evening 4pm-8pm", range(16, 20)),
    ("Night 8pm-12am", range(20, 24)),
]

# Formatter registry: list of (predicate, formatter) tuples
# Each predicate checks if this formatter can handle the data
# Order matters - first match wins
_FORMATTERS: list[tuple[callable, callable]] = []


def _register_formatter(predicate: callable):
    """Decorator to register a formatter with its predicate."""

    def decorator(formatter: callable):
        _FORMATTERS.append((predicate, formatter))
        return formatter

    return decorator


def _format_timestamp(ts: int | None) -> str:
    if ts is None:
        return "never"
    return to_utc_datetime(ts).strftime("%Y-%m-%d %H:%M UTC")


def _time_lines(data: dict) -> list[str]:
    by_hour = data["by_hour"]
    lines = [
        f"Most active hour: {data['most_active_hour']:02d}:00 UTC",
        f"Most active day: {data['most_active_day']}",
        f"Preferred time: {data['preferred_time_range']}",
        "",
        "Time of day:",
    ]
    for label, hours in TIME_BLOCKS:
        lines.append(f"  {label}: {sum(by_hour.get(h, 0) for h in hours)}")
    lines.append("")
    lines.append("Day of week:")
    for day, count in data["by_day_of_week"].items():
        lines.append(f"  {day}: {count}")
    return lines


def _theme_lines(data: dict) -> list[str]:
    lines = [f"Top theme: {data['top_theme']}", f"Diversity: {data['diversity']:.2f}", ""]
    lines.append("Themes:")
    for item in data["themes"][:20]:
        lines.append(f"  {item['theme']}: {item['count']} ({item['percentage']}%)")
    return lines


def _emotion_lines(data: dict) -> list[str]:
    lines = [
        f"Most common emotion: {data['most_common']}",
        f"Improvement rate: {data['improvement_rate']}%",
        "",
        "Emotions:",
    ]
    for item in data["emotions"][:20]:
        lines.append(f"  {item['emotion']}: {item['count']} ({item['percentage']}%)")
    return lines


def _tool_lines(data: dict) -> list[str]:
    favorites = ", ".join(tool_display_name(t) for t in data["favorite_tools"]) or "none"
    least_used = ", ".join(tool_display_name(t) for t in data["least_used_tools"]) or "none"
    lines = [
        f"Favorite tools: {favorites}",
        f"Least used tools: {least_used}",
        f"Usage balance: {data['usage_balance']:.2f}",
        "",
        "Tool usage:",
    ]
    for tool, count in data["by_tool"].items():
        lines.append(f"  {tool_display_name(tool)}: {count}")
    return lines


def _trend_lines(data: dict) -> list[str]:
    return [
        f"Total sessions: {data['total_sessions']}",
        f"Weekly average: {data['weekly_average']}",
        f"Trend: {data['trend']}",
        f"Streak: {data['streak_days']} days",
        f"Last active: {_format_timestamp(data['last_active'])}",
    ]


@_register_formatter(lambda d: "time_patterns" in d and "session_trends" in d)
def _format_report(data: dict) -> list[str]:
    lines = ["Pattern Report", "", "== Sessions =="]
    lines.extend(_trend_lines(data["session_trends"]))
    lines.extend(["", "== Time =="])
    lines.extend(_time_lines(data["time_patterns"]))
    lines.extend(["", "== Themes =="])
    lines.extend(_theme_lines(data["theme_patterns"]))
    lines.extend(["", "== Emotions =="])
    lines.extend(_emotion_lines(data["emotional_patterns"]))
    lines.extend(["", "== Tools =="])
    lines.extend(_tool_lines(data["tool_usage_patterns"]))
    return lines


@_register_formatter(lambda d: "by_hour" in d)
def _format_time(data: dict) -> list[str]:
    return _time_lines(data)


@_register_formatter(lambda d: "themes" in d and "diversity" in d)
def _format_themes(data: dict) -> list[str]:
    return _theme_lines(data)


@_register_formatter(lambda d: "emotions" in d and "improvement_rate" in d)
def _format_emotions(data: dict) -> list[str]:
    return _emotion_lines(data)


@_register_formatter(lambda d: "by_tool" in d)
def _format_tools(data: dict) -> list[str]:
    return _tool_lines(data)


@_register_formatter(lambda d: "streak_days" in d)
def _format_trends(data: dict) -> list[str]:
    return _trend_lines(data)


@_register_formatter(lambda d: "total_annotations" in d)
def _format_training(data: dict) -> list[str]:
    lines = [
        f"Training annotations: {data['total_annotations']}",
        f"Avg emotional accuracy: {data['avg_emotional_accuracy']}/5",
        f"Would use again: {data['would_use_again_rate']}%",
        f"Most common missing: {data['most_common_missing'] or 'N/A'}",
        f"Most common helpful: {data['most_common_helpful'] or 'N/A'}",
        "",
        "Recommendations:",
    ]
    for rec in data.get("recommendations", []):
        lines.append(f"  - {rec}")
    return lines


@_register_formatter(lambda d: "records_loaded" in d)
def _format_status(data: dict) -> list[str]:
    lines = [
        f"History: {data['path']}",
        f"Files found: {data['files_found']}",
        f"Records: {data['records_loaded']}",
        f"Errors: {data['errors']}",
    ]
    if data.get("earliest_session"):
        lines.append(
            f"Date range: {data['earliest_session'][:10]} to {data['latest_session'][:10]}"
        )
    return lines


def format_output(data: dict, json_output: bool = False) -> str:
    """Format output as JSON or human-readable."""
    if json_output:
        return json.dumps(data, indent=2, default=str)

    # Find matching formatter from registry
    for predicate, formatter in _FORMATTERS:
        if predicate(data):
            return "\n".join(formatter(data))

    # Fallback to JSON if no formatter matches
    return json.dumps(data, indent=2, default=str)


def _load(args):
    return ingest_history(Path(args.history), days=args.days)["records"]


def cmd_status(args):
    """Show history file status."""
    result = ingest_history(Path(args.history), days=args.days)
    records = result.pop("records")
    result["earliest_session"] = (
        to_utc_datetime(records[0].timestamp).isoformat() if records else None
    )
    result["latest_session"] = (
        to_utc_datetime(records[-1].timestamp).isoformat() if records else None
    )
    print(format_output(result, args.json))


def cmd_time(args):
    """Show time-of-day and day-of-week patterns."""
    print(format_output(analyze_time_patterns(_load(args)).to_dict(), args.json))


def cmd_themes(args):
    """Show theme distribution."""
    print(format_output(analyze_theme_patterns(_load(args)).to_dict(), args.json))


def cmd_emotions(args):
    """Show emotional patterns."""
    print(format_output(analyze_emotional_patterns(_load(args)).to_dict(), args.json))


def cmd_tools(args):
    """Show tool usage patterns."""
    print(format_output(analyze_tool_usage_patterns(_load(args)).to_dict(), args.json))


def cmd_trends(args):
    """Show session trends."""
    print(format_output(analyze_session_trends(_load(args)).to_dict(), args.json))


def cmd_report(args):
    """Show the full pattern report."""
    print(format_output(generate_full_report(_load(args)).to_dict(), args.json))


def cmd_training(args):
    """Show training annotation quality."""
    annotations = load_annotations(Path(args.annotations))
    quality = analyze_training_quality(annotations)

    if args.export:
        print(
            format_training_report(
                quality, annotations, args.user_id, datetime.now(timezone.utc)
            )
        )
        return

    if quality is None:
        print("No training data available")
        return
    print(format_output(quality, args.json))


def _add_history_args(sub):
    sub.add_argument(
        "--history",
        default=str(DEFAULT_HISTORY_PATH),
        help=f"History file or directory (default: {DEFAULT_HISTORY_PATH})",
    )
    sub.add_argument("--days", type=int, default=None, help="Only analyze the last N days")


def main():
    """CLI entry point."""
    epilog = """
Examples:
  clarity-analytics-cli status                    # History file stats
  clarity-analytics-cli report                    # All patterns
  clarity-analytics-cli trends --days 30          # Cadence over the last 30 days
  clarity-analytics-cli themes --history export.json
  clarity-analytics-cli training --export         # Training data report

All commands support --json for machine-readable output.
Hours, weekdays and streak dates are computed in UTC.
"""
    parser = argparse.ArgumentParser(
        description="Daily Clarity Pattern Analytics CLI - Analyze reflection session patterns",
        prog="clarity-analytics-cli",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # status
    sub = subparsers.add_parser("status", help="Show history file status")
    _add_history_args(sub)
    sub.set_defaults(func=cmd_status)

    # time
    sub = subparsers.add_parser("time", help="Show time-of-day and weekday patterns")
    _add_history_args(sub)
    sub.set_defaults(func=cmd_time)

    # themes
    sub = subparsers.add_parser("themes", help="Show theme distribution and diversity")
    _add_history_args(sub)
    sub.set_defaults(func=cmd_themes)

    # emotions
    sub = subparsers.add_parser("emotions", help="Show emotions and improvement rate")
    _add_history_args(sub)
    sub.set_defaults(func=cmd_emotions)

    # tools
    sub = subparsers.add_parser("tools", help="Show tool usage and balance")
    _add_history_args(sub)
    sub.set_defaults(func=cmd_tools)

    # trends
    sub = subparsers.add_parser("trends", help="Show session cadence, trend and streak")
    _add_history_args(sub)
    sub.set_defaults(func=cmd_trends)

    # report
    sub = subparsers.add_parser("report", help="Show the full pattern report")
    _add_history_args(sub)
    sub.set_defaults(func=cmd_report)

    # training
    sub = subparsers.add_parser("training", help="Analyze training annotation quality")
    sub.add_argument(
        "--annotations",
        default=str(DEFAULT_ANNOTATIONS_PATH),
        help=f"Annotation export file (default: {DEFAULT_ANNOTATIONS_PATH})",
    )
    sub.add_argument("--user-id", default="unknown", help="User id for the exported report")
    sub.add_argument("--export", action="store_true", help="Print the full text report")
    sub.set_defaults(func=cmd_training)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
