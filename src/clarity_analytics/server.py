"""MCP Pattern Analytics Server.

Provides tools for analyzing a user's reflection session history:
- get_status: History file stats
- analyze_time_patterns: Hour and weekday habits
- analyze_theme_patterns: Recurring themes and diversity
- analyze_emotional_patterns: Emotions and improvement rate
- analyze_tool_usage: Tool preferences and balance
- analyze_session_trends: Cadence, trend and streak
- generate_full_report: All of the above
- analyze_training_quality: Training annotation summary (TRAINING_MODE only)
"""

import logging
import os
from pathlib import Path

from fastmcp import FastMCP

from clarity_analytics import __version__
from clarity_analytics.ingest import (
    DEFAULT_ANNOTATIONS_PATH,
    DEFAULT_HISTORY_PATH,
    ingest_history,
    load_annotations,
)
from clarity_analytics.patterns import (
    analyze_emotional_patterns as do_analyze_emotional_patterns,
)
from clarity_analytics.patterns import (
    analyze_session_trends as do_analyze_session_trends,
)
from clarity_analytics.patterns import (
    analyze_theme_patterns as do_analyze_theme_patterns,
)
from clarity_analytics.patterns import (
    analyze_time_patterns as do_analyze_time_patterns,
)
from clarity_analytics.patterns import (
    analyze_tool_usage_patterns,
)
from clarity_analytics.patterns import generate_full_report as do_generate_full_report
from clarity_analytics.stats import to_utc_datetime
from clarity_analytics.training import analyze_training_quality as do_analyze_training_quality
from clarity_analytics.training import is_training_mode

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("clarity-analytics")
if os.environ.get("DEV_MODE"):
    logger.setLevel(logging.DEBUG)

# Initialize MCP server
mcp = FastMCP("clarity-analytics")


def _resolve_path(path: str | None, default: Path) -> Path:
    return Path(path).expanduser() if path else default


def _load(path: str | None, days: int | None):
    """Load records for a tool call, or return an error dict if the path is missing."""
    history_path = _resolve_path(path, DEFAULT_HISTORY_PATH)
    if not history_path.exists():
        return None, {
            "status": "error",
            "error": f"History not found: {history_path}",
        }
    return ingest_history(history_path, days=days)["records"], None


@mcp.resource("clarity-analytics://guide", description="Usage guide and best practices")
def usage_guide() -> str:
    """Return the pattern analytics usage guide from external markdown file."""
    guide_path = Path(__file__).parent / "guide.md"
    try:
        return guide_path.read_text()
    except FileNotFoundError:
        return "# Pattern Analytics Usage Guide\n\nGuide file not found."


@mcp.tool()
def get_status(path: str | None = None) -> dict:
    """Get history file status.

    Args:
        path: History file or directory (default: configured history path)

    Returns:
        Status info including record count, load errors and date range
    """
    history_path = _resolve_path(path, DEFAULT_HISTORY_PATH)
    result = ingest_history(history_path)
    records = result.pop("records")

    return {
        "status": "ok",
        "version": __version__,
        "history_exists": history_path.exists(),
        "earliest_session": to_utc_datetime(records[0].timestamp).isoformat()
        if records
        else None,
        "latest_session": to_utc_datetime(records[-1].timestamp).isoformat()
        if records
        else None,
        **result,
    }


@mcp.tool()
def analyze_time_patterns(path: str | None = None, days: int | None = None) -> dict:
    """Get hour-of-day and day-of-week session habits (UTC).

    Args:
        path: History file or directory (default: configured history path)
        days: Only analyze the last N days (default: all history)

    Returns:
        Histograms, most active hour/day and preferred time range
    """
    records, error = _load(path, days)
    if error:
        return error
    return do_analyze_time_patterns(records).to_dict()


@mcp.tool()
def analyze_theme_patterns(path: str | None = None, days: int | None = None) -> dict:
    """Get recurring themes with percentages and a diversity score.

    Args:
        path: History file or directory (default: configured history path)
        days: Only analyze the last N days (default: all history)

    Returns:
        Ranked themes, top theme and diversity (0-1)
    """
    records, error = _load(path, days)
    if error:
        return error
    return do_analyze_theme_patterns(records).to_dict()


@mcp.tool()
def analyze_emotional_patterns(path: str | None = None, days: int | None = None) -> dict:
    """Get detected emotions and the share of sessions rated helpful.

    Args:
        path: History file or directory (default: configured history path)
        days: Only analyze the last N days (default: all history)

    Returns:
        Ranked emotions, most common emotion and improvement rate
    """
    records, error = _load(path, days)
    if error:
        return error
    return do_analyze_emotional_patterns(records).to_dict()


@mcp.tool()
def analyze_tool_usage(path: str | None = None, days: int | None = None) -> dict:
    """Get per-tool usage, favorite and least used tools, and usage balance.

    Args:
        path: History file or directory (default: configured history path)
        days: Only analyze the last N days (default: all history)

    Returns:
        Tool usage breakdown with balance score (0-1)
    """
    records, error = _load(path, days)
    if error:
        return error
    return analyze_tool_usage_patterns(records).to_dict()


@mcp.tool()
def analyze_session_trends(path: str | None = None, days: int | None = None) -> dict:
    """Get session cadence: weekly average, trend direction and current streak.

    Args:
        path: History file or directory (default: configured history path)
        days: Only analyze the last N days (default: all history)

    Returns:
        Session trend summary
    """
    records, error = _load(path, days)
    if error:
        return error
    return do_analyze_session_trends(records).to_dict()


@mcp.tool()
def generate_full_report(path: str | None = None, days: int | None = None) -> dict:
    """Get every pattern analysis over the same history.

    Args:
        path: History file or directory (default: configured history path)
        days: Only analyze the last N days (default: all history)

    Returns:
        Time, theme, emotional, tool usage and session trend patterns
    """
    records, error = _load(path, days)
    if error:
        return error
    return do_generate_full_report(records).to_dict()


@mcp.tool()
def analyze_training_quality(path: str | None = None) -> dict:
    """Summarize training annotation quality. Requires TRAINING_MODE=true.

    Args:
        path: Annotation export file (default: configured annotations path)

    Returns:
        Accuracy, would-use-again rate, common gaps and recommendations
    """
    if not is_training_mode():
        logger.warning("Training mode is not enabled")
        return {"status": "disabled", "message": "Set TRAINING_MODE=true to enable"}

    annotations = load_annotations(_resolve_path(path, DEFAULT_ANNOTATIONS_PATH))
    quality = do_analyze_training_quality(annotations)
    if quality is None:
        return {"status": "ok", "total_annotations": 0}
    return {"status": "ok", **quality}


def create_app():
    """Create the ASGI app for uvicorn."""
    # stateless_http=True allows resilience to server restarts
    return mcp.http_app(stateless_http=True)


def main():
    """Run the MCP server."""
    import uvicorn

    port = int(os.environ.get("PORT", 8082))
    host = os.environ.get("HOST", "127.0.0.1")

    print(f"Starting Daily Clarity Pattern Analytics on {host}:{port}")
    print(f"MCP endpoint: http://{host}:{port}/mcp")

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
