"""
Timeline helpers: relative times and day buckets for grouped history.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any, List, Optional

from .grouper import HistoryGroup
from .records import EPOCH, parse_timestamp


@dataclass
class DayGroup:
    """History groups whose newest event falls on the same UTC day."""
    day: date
    label: str
    groups: List[HistoryGroup] = field(default_factory=list)


def _now(now: Optional[datetime]) -> datetime:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def format_compact_relative_time(value: Any, now: Optional[datetime] = None) -> str:
    """'just now', '5m ago', '3h ago', '2d ago', or the date for older events."""
    ts = parse_timestamp(value)
    if ts == EPOCH:
        return "-"
    now = _now(now)

    seconds = (now - ts).total_seconds()
    if seconds < 60:
        return "just now"
    minutes = int(seconds // 60)
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days < 7:
        return f"{days}d ago"
    return ts.strftime("%Y-%m-%d")


def day_label(day: date, today: date) -> str:
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return day.strftime("%b %d, %Y")


def group_by_day(groups: List[HistoryGroup], now: Optional[datetime] = None) -> List[DayGroup]:
    """Bucket groups by the day of their newest event, newest day first."""
    today = _now(now).date()
    days: dict = {}
    for group in groups:
        day = group.latest.date()
        if day not in days:
            days[day] = DayGroup(day=day, label=day_label(day, today))
        days[day].groups.append(group)
    return sorted(days.values(), key=lambda d: d.day, reverse=True)
