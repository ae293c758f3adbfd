"""
Links back into the *arr web UIs and the client/indexer an event came through.
"""

from typing import Optional, Tuple
from urllib.parse import quote

from .records import EventRecord, Service


def build_external_link(record: EventRecord, instance_url: Optional[str]) -> Optional[str]:
    """Series/movie page on the instance that reported the event.

    Slugs are preferred, the numeric id is used when the payload had no
    series/movie object. Other services have no per-item page.
    """
    if not instance_url:
        return None
    base_url = instance_url.rstrip('/')

    if record.service == Service.SONARR:
        segment = record.series_slug or record.series_id
        path = 'series'
    elif record.service == Service.RADARR:
        segment = record.movie_slug or record.movie_id
        path = 'movie'
    else:
        return None

    if segment is None:
        return None
    return f"{base_url}/{path}/{quote(str(segment), safe='')}"


def get_source_client(record: EventRecord) -> Tuple[Optional[str], Optional[str]]:
    """(name, kind) of where the event came from; kind is 'indexer' or 'client'.

    Prowlarr events and grabs name the indexer, everything after the grab
    names the download client.
    """
    kind = record.kind
    if record.service == Service.PROWLARR or 'grab' in kind:
        order = (('indexer', record.indexer), ('client', record.download_client))
    else:
        order = (('client', record.download_client), ('indexer', record.indexer))

    for source_kind, name in order:
        if name:
            return name, source_kind
    return None, None
