"""
Summaries over history records for the dashboard cards and filters.
"""

from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from .records import EventRecord, normalize_status
from .rules import ACTIVITY_RULES, classify


@dataclass
class ActivitySummary:
    """Grabs/imports/failures over the trailing window."""
    grabs: int = 0
    imports: int = 0
    failures: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


def create_activity_summary(items: Iterable[EventRecord], now: Optional[datetime] = None,
                            window_hours: int = 24) -> ActivitySummary:
    """Count recent activity; each event lands in at most one counter."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff = now - timedelta(hours=window_hours)

    summary = ActivitySummary()
    for item in items:
        if item.timestamp < cutoff:
            continue
        bucket = classify(item.kind, ACTIVITY_RULES)
        if bucket is not None:
            setattr(summary, bucket, getattr(summary, bucket) + 1)
    return summary


def create_service_summary(items: Iterable[EventRecord]) -> Dict[str, int]:
    """Record count per service."""
    summary: Dict[str, int] = {}
    for item in items:
        summary[item.service] = summary.get(item.service, 0) + 1
    return summary


def create_status_summary(items: Iterable[EventRecord]) -> List[Tuple[str, int]]:
    """(status label, count) pairs, most frequent first."""
    summary: Dict[str, int] = {}
    for item in items:
        label = item.status_label
        summary[label] = summary.get(label, 0) + 1
    return sorted(summary.items(), key=lambda entry: entry[1], reverse=True)


def extract_status_options(items: Iterable[EventRecord]) -> List[Dict[str, str]]:
    """Distinct statuses for the filter dropdown, first spelling wins."""
    seen: Dict[str, str] = {}
    for item in items:
        label = item.status_label
        seen.setdefault(label.lower(), label)
    return [{'value': value, 'label': label} for value, label in seen.items()]


def extract_instance_options(items: Iterable[EventRecord]) -> List[Dict[str, str]]:
    """Distinct instances for the filter dropdown, last name wins."""
    seen: Dict[str, str] = {}
    for item in items:
        seen[item.instance_id] = item.instance_name or item.instance_id
    return [{'value': value, 'label': label} for value, label in seen.items()]


def filter_history(items: Iterable[EventRecord], service: str = "all", instance: str = "all",
                   status: str = "all", search: str = "") -> List[EventRecord]:
    """Apply the dashboard filters."""
    term = (search or "").strip().lower()
    status = (status or "all").lower()
    result = []
    for item in items:
        if service != "all" and item.service != service:
            continue
        if instance != "all" and item.instance_id != instance:
            continue
        if status != "all" and normalize_status(item.status, item.event_type) != status:
            continue
        if term:
            haystack = [item.title, item.source_title, item.download_client,
                        item.indexer, item.reason]
            if not any(term in value.lower() for value in haystack if value):
                continue
        result.append(item)
    return result
