import math
from datetime import datetime, timezone
from typing import Optional

# Completion tiers shared by the metric cards, charts and progress bars.
SUCCESS_THRESHOLD = 90
INFO_THRESHOLD = 70
WARNING_THRESHOLD = 50

TIER_STYLES = {
    "success": "green",
    "info": "blue",
    "warning": "yellow",
    "danger": "red",
    "default": "white",
}


def format_percentage(value: float) -> str:
    # Halves round up, not to even.
    return f"{math.floor(value + 0.5)}%"


def format_number(value: float) -> str:
    if isinstance(value, float) and not value.is_integer():
        return f"{value:,.3f}".rstrip("0").rstrip(".")
    return f"{int(value):,}"


def completion_tier(percentage: float) -> str:
    """Map a completion percentage onto a metric variant name."""
    if percentage >= SUCCESS_THRESHOLD:
        return "success"
    if percentage >= INFO_THRESHOLD:
        return "info"
    if percentage >= WARNING_THRESHOLD:
        return "warning"
    return "danger"


def completion_style(percentage: float) -> str:
    """rich style name for a completion percentage."""
    return TIER_STYLES[completion_tier(percentage)]


def parse_timestamp(value: str) -> Optional[datetime]:
    if not value:
        return None
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_relative_time(date_string: str, now: Optional[datetime] = None) -> str:
    """
    Render an ISO timestamp as "just now", "5m ago", "3h ago", "2d ago",
    or a plain date once it is a week old.
    """
    date = parse_timestamp(date_string)
    if date is None:
        return date_string or ""
    now = now or datetime.now(timezone.utc)

    diff_seconds = (now - date).total_seconds()
    diff_mins = int(diff_seconds // 60)
    diff_hours = int(diff_seconds // 3600)
    diff_days = int(diff_seconds // 86400)

    if diff_mins < 1:
        return "just now"
    if diff_mins < 60:
        return f"{diff_mins}m ago"
    if diff_hours < 24:
        return f"{diff_hours}h ago"
    if diff_days < 7:
        return f"{diff_days}d ago"

    return date.date().isoformat()


def pluralize(count: int, singular: str, plural: Optional[str] = None) -> str:
    if count == 1:
        return f"{count} {singular}"
    return f"{count} {plural or singular + 's'}"
