"""
History module - rebuilds download lifecycles from *arr history feeds.

- EventRecord / normalize_record: one shape for every service's history records
- group_history: groups events describing the same download
- detect_lifecycle_stages: Grabbed -> Imported -> ... for a group
- create_activity_summary & friends: dashboard counters and filter options
- get_display_title: readable titles, Prowlarr payloads included
- build_external_link: series/movie page on the reporting instance
"""

from .records import EventRecord, Service, normalize_record, parse_timestamp, quality_name, normalize_status
from .grouper import HistoryGroup, group_history, is_valid_download_id
from .lifecycle import LifecycleStage, detect_lifecycle_stages
from .summary import (
    ActivitySummary, create_activity_summary, create_service_summary,
    create_status_summary, extract_status_options, extract_instance_options,
    filter_history,
)
from .titles import get_display_title, get_indexer_details
from .links import build_external_link, get_source_client
from .rules import status_badge
from .timeline import DayGroup, group_by_day, format_compact_relative_time

__all__ = [
    'EventRecord', 'Service', 'normalize_record', 'parse_timestamp', 'quality_name',
    'normalize_status', 'HistoryGroup', 'group_history', 'is_valid_download_id',
    'LifecycleStage', 'detect_lifecycle_stages', 'ActivitySummary',
    'create_activity_summary', 'create_service_summary', 'create_status_summary',
    'extract_status_options', 'extract_instance_options', 'filter_history',
    'get_display_title', 'get_indexer_details', 'build_external_link',
    'get_source_client', 'status_badge',
    'DayGroup', 'group_by_day', 'format_compact_relative_time',
]
