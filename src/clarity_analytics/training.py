"""Quality analysis of pre-launch training annotations.

During the training phase testers annotate conversations with what they
needed, what helped, what was missing, and how emotionally accurate the
response felt. These helpers summarize that feedback to check personalization
before a beta launch.
"""

import os
from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from clarity_analytics.records import TrainingAnnotation, tool_display_name
from clarity_analytics.stats import round_half_up, round_to, utc_date

# Below these the report flags a problem
MIN_EMOTIONAL_ACCURACY = 3.5
MIN_WOULD_USE_AGAIN_RATE = 70


def is_training_mode() -> bool:
    """Check whether training mode is enabled via TRAINING_MODE=true."""
    return os.environ.get("TRAINING_MODE") == "true"


def _most_common(values: Iterable[str]) -> str | None:
    counts = Counter(v for v in values if v)
    if not counts:
        return None
    return counts.most_common(1)[0][0]


def analyze_training_quality(annotations: Iterable[TrainingAnnotation]) -> dict | None:
    """Summarize annotation quality across all training sessions.

    Args:
        annotations: Training annotations, any order

    Returns:
        Dict with averages, rates, the most common missing/helpful answers and
        recommendations, or None when there are no annotations
    """
    annotations = list(annotations)
    if not annotations:
        return None

    total = len(annotations)
    avg_accuracy = sum(a.emotional_accuracy for a in annotations) / total
    would_use_again = sum(1 for a in annotations if a.would_use_again) / total

    quality = {
        "total_annotations": total,
        "avg_emotional_accuracy": round_to(avg_accuracy, 1),
        "would_use_again_rate": round_half_up(would_use_again * 100),
        "most_common_missing": _most_common(a.what_was_missing for a in annotations),
        "most_common_helpful": _most_common(a.what_was_helpful for a in annotations),
    }
    quality["recommendations"] = build_recommendations(quality)
    return quality


def build_recommendations(quality: dict) -> list[str]:
    """Turn quality metrics into review recommendations."""
    recommendations = []

    if quality["avg_emotional_accuracy"] < MIN_EMOTIONAL_ACCURACY:
        recommendations.append("Low emotional accuracy - review AI prompts for empathy")
    else:
        recommendations.append("Good emotional accuracy")

    if quality["would_use_again_rate"] < MIN_WOULD_USE_AGAIN_RATE:
        recommendations.append('Low "would use again" rate - investigate user satisfaction')
    else:
        recommendations.append('High "would use again" rate')

    if quality["most_common_missing"]:
        recommendations.append(
            f'Commonly missing: "{quality["most_common_missing"]}" - consider adding this'
        )
    else:
        recommendations.append("No consistent gaps identified")

    return recommendations


def format_training_report(
    quality: dict | None,
    annotations: list[TrainingAnnotation],
    user_id: str,
    generated_at: datetime,
) -> str:
    """Render a plain-text training data report."""
    if not quality:
        return "No training data available"

    lines = [
        "TRAINING DATA ANALYSIS REPORT",
        f"Generated: {generated_at.isoformat()}",
        f"User ID: {user_id}",
        "",
        "=== OVERVIEW ===",
        f"Total Training Sessions: {quality['total_annotations']}",
        f"Average Emotional Accuracy: {quality['avg_emotional_accuracy']}/5",
        f"Would Use Again Rate: {quality['would_use_again_rate']}%",
        f"Most Common Missing Element: {quality['most_common_missing'] or 'N/A'}",
        f"Most Common Helpful Element: {quality['most_common_helpful'] or 'N/A'}",
        "",
        "=== DETAILED ANNOTATIONS ===",
    ]

    for idx, a in enumerate(annotations, 1):
        lines.append(f"Session {idx}:")
        lines.append(f"Tool: {tool_display_name(a.tool_id) if a.tool_id else 'unknown'}")
        if a.created_at is not None:
            lines.append(f"Date: {utc_date(a.created_at).isoformat()}")
        lines.append(f"What I Needed: {a.what_i_needed}")
        lines.append(f"What Was Helpful: {a.what_was_helpful}")
        lines.append(f"What Was Missing: {a.what_was_missing}")
        lines.append(f"Emotional Accuracy: {a.emotional_accuracy}/5")
        lines.append(f"Would Use Again: {'Yes' if a.would_use_again else 'No'}")
        if a.additional_notes:
            lines.append(f"Notes: {a.additional_notes}")
        lines.append("---")

    lines.append("")
    lines.append("=== RECOMMENDATIONS ===")
    lines.extend(quality["recommendations"])

    return "\n".join(lines)
