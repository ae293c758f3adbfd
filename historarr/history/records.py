"""
History records for Historarr.

Raw history payloads from the *arr services disagree on field names
(eventType vs event, date vs eventDateUtc, nested series/movie/artist/book
objects...). Everything is flattened into EventRecord here so the grouping
and summary code only ever sees one shape.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional


class Service:
    """Known history sources."""
    SONARR = "sonarr"      # Episodic tracker
    RADARR = "radarr"      # Movie tracker
    PROWLARR = "prowlarr"  # Indexer aggregator
    LIDARR = "lidarr"      # Music tracker
    READARR = "readarr"    # Book tracker

    ALL = (SONARR, RADARR, PROWLARR, LIDARR, READARR)
    MEDIA = (SONARR, RADARR)


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# .NET emits 1 to 7 fractional digits, fromisoformat before 3.11 wants exactly 3 or 6
_FRACTION_RE = re.compile(r'\.(\d+)')


def _six_digit_fraction(match) -> str:
    return '.' + match.group(1)[:6].ljust(6, '0')


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO timestamp into an aware UTC datetime.

    Missing or unparseable values return the epoch so they sort oldest.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip().replace('Z', '+00:00')
        text = _FRACTION_RE.sub(_six_digit_fraction, text, count=1)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return EPOCH
    else:
        return EPOCH

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_status(status: Optional[str] = None, event_type: Optional[str] = None) -> str:
    """Lower-cased status, falling back to event type."""
    return (status or event_type or "Unknown").lower()


def _first(*values) -> Any:
    for value in values:
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _to_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    if isinstance(value, bool):
        return str(value).lower()
    text = str(value)
    return text if text.strip() else None


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _nested(raw: Dict, key: str, attr: str) -> Any:
    obj = raw.get(key)
    if isinstance(obj, dict):
        return obj.get(attr)
    return None


def _custom_formats(value: Any) -> Optional[List[Dict[str, Any]]]:
    """[{id, name}] entries of a customFormats list, malformed ones dropped."""
    if not isinstance(value, list):
        return None
    formats = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        format_id = _to_int(entry.get('id'))
        name = _to_str(entry.get('name'))
        if format_id is not None and name:
            formats.append({'id': format_id, 'name': name})
    return formats


@dataclass(frozen=True)
class EventRecord:
    """One history event reported by a service instance.

    Payload dicts and lists are left out of the hash so records can sit in sets.
    """
    service: str
    instance_id: str = ""
    instance_name: str = ""
    id: Optional[Any] = None
    event_type: Optional[str] = None
    status: Optional[str] = None
    download_id: Optional[str] = None
    date: Optional[str] = None
    episode_id: Optional[int] = None
    series_id: Optional[int] = None
    movie_id: Optional[int] = None
    series_slug: Optional[str] = None
    movie_slug: Optional[str] = None
    artist_id: Optional[int] = None
    album_id: Optional[int] = None
    track_id: Optional[int] = None
    author_id: Optional[int] = None
    book_id: Optional[int] = None
    quality: Optional[Dict[str, Any]] = field(default=None, hash=False)
    source_title: Optional[str] = None
    title: Optional[str] = None
    data: Optional[Dict[str, Any]] = field(default=None, hash=False)
    indexer: Optional[str] = None
    download_client: Optional[str] = None
    protocol: Optional[str] = None
    reason: Optional[str] = None
    size: Optional[int] = None
    custom_formats: Optional[List[Dict[str, Any]]] = field(default=None, hash=False)
    custom_format_score: Optional[int] = None

    @property
    def timestamp(self) -> datetime:
        return parse_timestamp(self.date)

    @property
    def kind(self) -> str:
        """Event type (or status) lower-cased for substring matching."""
        return (self.event_type or self.status or "").lower()

    @property
    def quality_name(self) -> str:
        return quality_name(self)

    @property
    def status_label(self) -> str:
        """Status as reported, for display and tallies."""
        return self.status or self.event_type or "Unknown"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'service': self.service,
            'instance_id': self.instance_id,
            'instance_name': self.instance_name,
            'event_type': self.event_type,
            'status': self.status,
            'download_id': self.download_id,
            'date': self.date,
            'episode_id': self.episode_id,
            'series_id': self.series_id,
            'movie_id': self.movie_id,
            'series_slug': self.series_slug,
            'movie_slug': self.movie_slug,
            'artist_id': self.artist_id,
            'album_id': self.album_id,
            'track_id': self.track_id,
            'author_id': self.author_id,
            'book_id': self.book_id,
            'quality': self.quality_name,
            'source_title': self.source_title,
            'title': self.title,
            'data': self.data,
            'indexer': self.indexer,
            'download_client': self.download_client,
            'protocol': self.protocol,
            'reason': self.reason,
            'size': self.size,
            'custom_formats': self.custom_formats,
            'custom_format_score': self.custom_format_score,
        }


def quality_name(record: EventRecord) -> str:
    """Quality tier name (quality.quality.name), 'unknown' if absent."""
    quality = record.quality
    if isinstance(quality, dict):
        inner = quality.get('quality')
        if isinstance(inner, dict):
            name = inner.get('name')
            if isinstance(name, str) and name.strip():
                return name
    return "unknown"


def normalize_record(raw: Dict[str, Any], service: str,
                     instance_id: str = "", instance_name: str = "") -> EventRecord:
    """Build an EventRecord from a raw history record.

    Args:
        raw: One element of the service's history 'records' list
        service: One of Service.ALL
        instance_id: Configured instance identifier
        instance_name: Human readable instance name

    Raises:
        ValueError: If raw is not a JSON object
    """
    if not isinstance(raw, dict):
        raise ValueError(f"History record must be an object, got {type(raw).__name__}")

    data = raw.get('data') if isinstance(raw.get('data'), dict) else {}
    is_prowlarr = service == Service.PROWLARR

    record_id = _first(raw.get('id'), raw.get('eventId'), raw.get('downloadId'),
                       raw.get('sourceId'), raw.get('historyId'), raw.get('guid'))
    if isinstance(record_id, (dict, list)):
        record_id = None

    # Services without a client hash fall back to their event id here,
    # the grouper is responsible for rejecting those
    download_id = _to_str(_first(raw.get('downloadId'), raw.get('sourceId'),
                                 raw.get('eventId'), raw.get('guid'), record_id))

    if is_prowlarr:
        title = _to_str(_first(raw.get('sourceTitle'), data.get('releaseTitle'),
                               data.get('title'), data.get('query'),
                               data.get('searchTerm'), data.get('searchString'),
                               raw.get('title')))
        indexer = _to_str(_first(data.get('indexer'), data.get('indexerName'),
                                 data.get('host'), raw.get('indexer')))
    else:
        title = _to_str(_first(raw.get('title'), raw.get('sourceTitle'),
                               _nested(raw, 'series', 'title'),
                               _nested(raw, 'movie', 'title'),
                               _nested(raw, 'artist', 'artistName'),
                               _nested(raw, 'album', 'title'),
                               _nested(raw, 'author', 'authorName'),
                               _nested(raw, 'book', 'title')))
        indexer = _to_str(_first(raw.get('indexer'), data.get('indexer'),
                                 data.get('indexerName')))

    quality = _first(raw.get('quality'), data.get('quality'))

    return EventRecord(
        service=service,
        instance_id=instance_id,
        instance_name=instance_name,
        id=record_id,
        event_type=_to_str(_first(raw.get('eventType'), raw.get('event'))),
        status=_to_str(_first(raw.get('status'), raw.get('eventType'), raw.get('event'))),
        download_id=download_id,
        date=_to_str(_first(raw.get('date'), raw.get('eventDate'),
                            raw.get('eventDateUtc'), raw.get('created'),
                            raw.get('timestamp'))),
        episode_id=_to_int(_first(raw.get('episodeId'), _nested(raw, 'episode', 'id'))),
        series_id=_to_int(_first(raw.get('seriesId'), _nested(raw, 'series', 'id'))),
        movie_id=_to_int(_first(raw.get('movieId'), _nested(raw, 'movie', 'id'))),
        series_slug=_to_str(_first(_nested(raw, 'series', 'titleSlug'), raw.get('seriesSlug'))),
        movie_slug=_to_str(_first(_nested(raw, 'movie', 'titleSlug'), raw.get('movieSlug'))),
        artist_id=_to_int(_first(raw.get('artistId'), _nested(raw, 'artist', 'id'))),
        album_id=_to_int(_first(raw.get('albumId'), _nested(raw, 'album', 'id'))),
        track_id=_to_int(_first(raw.get('trackId'), _nested(raw, 'track', 'id'))),
        author_id=_to_int(_first(raw.get('authorId'), _nested(raw, 'author', 'id'))),
        book_id=_to_int(_first(raw.get('bookId'), _nested(raw, 'book', 'id'))),
        quality=quality if isinstance(quality, dict) else None,
        source_title=_to_str(_first(raw.get('sourceTitle'), data.get('source'))),
        title=title,
        data=data or None,
        indexer=indexer,
        download_client=_to_str(_first(raw.get('downloadClient'),
                                       data.get('downloadClient'),
                                       data.get('downloadClientName'))),
        protocol=_to_str(_first(raw.get('protocol'), raw.get('downloadProtocol'),
                                data.get('protocol'))),
        reason=_to_str(_first(raw.get('reason'), data.get('reason'), raw.get('error'),
                              data.get('message'), data.get('statusMessage'))),
        size=_to_int(_first(raw.get('size'), data.get('size'))),
        custom_formats=_custom_formats(raw.get('customFormats')),
        custom_format_score=_to_int(raw.get('customFormatScore')),
    )
