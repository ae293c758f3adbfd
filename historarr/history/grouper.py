"""
History grouper for Historarr.

Rebuilds download lifecycles from the flat history feed of every instance.

HOW EVENTS ARE MATCHED (first strategy that yields a key wins):
    1. Prowlarr RSS polls       -> same instance, same 5 minute bucket
    2. Sonarr/Radarr events     -> download client hash, else
                                   episode/movie + quality in a 30 minute bucket, else
                                   release title + quality in a 1 minute bucket
    3. Anything else            -> raw download id
    4. Nothing usable           -> stays on its own

Delete events rarely carry the download id of the grab they undo, so they
are held back and attached afterwards to a group for the same episode/movie
that has activity within 2 hours of the delete.
"""

from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..config import HistorySettings
from .records import EPOCH, EventRecord, Service

GroupKey = Tuple[Any, ...]


@dataclass(frozen=True)
class HistoryGroup:
    """Events believed to describe one download, newest first."""
    items: Tuple[EventRecord, ...]
    download_id: Optional[str] = None

    @property
    def lead(self) -> EventRecord:
        return self.items[0]

    @property
    def latest(self) -> datetime:
        """Timestamp of the newest member."""
        return max((item.timestamp for item in self.items), default=EPOCH)

    @property
    def is_grouped(self) -> bool:
        return len(self.items) > 1

    def __len__(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'download_id': self.download_id,
            'items': [item.to_dict() for item in self.items],
        }


def _bucket(ts: datetime, minutes: int) -> int:
    """Index of the fixed window of the given size that ts falls in."""
    return (ts - EPOCH) // timedelta(minutes=max(minutes, 1))


def is_valid_download_id(value: Optional[str], min_length: int = 10) -> bool:
    """True for client-assigned download hashes.

    Short or all-digit ids are history event ids that some services put in
    the downloadId slot; grouping on them merges unrelated events.
    """
    if not value:
        return False
    value = value.strip()
    return len(value) > min_length and not value.isdigit()


def is_delete_event(record: EventRecord) -> bool:
    return 'delete' in (record.event_type or '').lower()


def is_rss_event(record: EventRecord) -> bool:
    kind = (record.event_type or '').lower()
    return record.service == Service.PROWLARR and ('rss' in kind or kind == 'indexerrss')


def _media_id(record: EventRecord) -> Optional[int]:
    if record.service == Service.SONARR:
        return record.episode_id
    if record.service == Service.RADARR:
        return record.movie_id
    return None


# ==================== Key strategies ====================

def rss_key(record: EventRecord, settings: HistorySettings) -> Optional[GroupKey]:
    if not is_rss_event(record):
        return None
    return ('rss', record.instance_id, _bucket(record.timestamp, settings.rss_window_minutes))


def download_key(record: EventRecord, settings: HistorySettings) -> Optional[GroupKey]:
    if not is_valid_download_id(record.download_id, settings.min_download_id_length):
        return None
    return ('download', record.download_id.strip())


def media_key(record: EventRecord, settings: HistorySettings) -> Optional[GroupKey]:
    media_id = _media_id(record)
    if not media_id:
        return None
    prefix = 'episode' if record.service == Service.SONARR else 'movie'
    return (prefix, record.instance_id, media_id, record.quality_name,
            _bucket(record.timestamp, settings.media_window_minutes))


def release_key(record: EventRecord, settings: HistorySettings) -> Optional[GroupKey]:
    title = (record.source_title or record.title or '').strip()
    if not title:
        return None
    return ('release', record.instance_id, title, record.quality_name,
            _bucket(record.timestamp, settings.release_window_minutes))


def raw_download_key(record: EventRecord, settings: HistorySettings) -> Optional[GroupKey]:
    download_id = (record.download_id or '').strip()
    if not download_id:
        return None
    return ('download', download_id)


MEDIA_STRATEGIES = (download_key, media_key, release_key)


def group_key(record: EventRecord, settings: HistorySettings) -> Optional[GroupKey]:
    """Bucket key for a non-delete event, None if it cannot be grouped."""
    if is_rss_event(record):
        return rss_key(record, settings)

    if record.service in Service.MEDIA:
        for strategy in MEDIA_STRATEGIES:
            key = strategy(record, settings)
            if key is not None:
                return key
        return None

    return raw_download_key(record, settings)


# ==================== Grouping ====================

def _newest_first(items: Iterable[EventRecord]) -> Tuple[EventRecord, ...]:
    return tuple(sorted(items, key=lambda item: item.timestamp, reverse=True))


def _attach_deletes(deletes: List[EventRecord],
                    buckets: "OrderedDict[GroupKey, List[EventRecord]]",
                    settings: HistorySettings) -> List[EventRecord]:
    """Attach delete events to matching buckets, return the leftovers."""
    # (service, instance, episode/movie id) of each bucket's first event
    index: Dict[Tuple[str, str, int], List[GroupKey]] = {}
    for key, members in buckets.items():
        lead = members[0]
        media_id = _media_id(lead)
        if media_id:
            index.setdefault((lead.service, lead.instance_id, media_id), []).append(key)

    window = timedelta(minutes=settings.delete_attach_minutes)
    leftovers = []
    for record in deletes:
        media_id = _media_id(record)
        candidates = index.get((record.service, record.instance_id, media_id), []) if media_id else []
        deleted_at = record.timestamp

        target = None
        for key in candidates:
            if any(abs(member.timestamp - deleted_at) < window for member in buckets[key]):
                target = key
                break

        if target is None:
            leftovers.append(record)
        else:
            buckets[target].append(record)

    return leftovers


def group_history(records: Iterable[EventRecord], group_by_download: bool = True,
                  settings: Optional[HistorySettings] = None) -> List[HistoryGroup]:
    """Group history events into download lifecycles.

    Args:
        records: Events from any number of services/instances
        group_by_download: When False every event is its own group
        settings: Window sizes (defaults to HistorySettings())

    Returns:
        Groups sorted by their newest event, most recent first
    """
    records = list(records)
    if not group_by_download:
        return [HistoryGroup(items=(record,), download_id=record.download_id) for record in records]

    settings = settings or HistorySettings()
    buckets: "OrderedDict[GroupKey, List[EventRecord]]" = OrderedDict()
    deletes: List[EventRecord] = []
    ungrouped: List[EventRecord] = []

    for record in records:
        if is_delete_event(record):
            deletes.append(record)
            continue

        key = group_key(record, settings)
        if key is None:
            ungrouped.append(record)
        else:
            buckets.setdefault(key, []).append(record)

    ungrouped.extend(_attach_deletes(deletes, buckets, settings))

    groups = []
    for members in buckets.values():
        items = _newest_first(members)
        groups.append(HistoryGroup(items=items, download_id=items[0].download_id))
    for record in ungrouped:
        groups.append(HistoryGroup(items=(record,), download_id=record.download_id))

    # Stable sort keeps insertion order for ties
    groups.sort(key=lambda group: group.items[0].timestamp, reverse=True)
    return groups
