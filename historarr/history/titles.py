"""
Display titles for history records.

Prowlarr records rarely carry a usable title of their own; the useful bits
(release name, search term, categories) live in the free-form data payload.
"""

from typing import Any, Dict, Optional

from .records import EventRecord, Service


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _number(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _release_title(data: Dict[str, Any]) -> Optional[str]:
    release = _text(data.get('releaseTitle')) or _text(data.get('title'))
    if release and release != "Untitled":
        return release
    return None


def _search_term(data: Dict[str, Any]) -> Optional[str]:
    return _text(data.get('query')) or _text(data.get('searchTerm')) or _text(data.get('term'))


def _categories(data: Dict[str, Any]) -> Optional[str]:
    categories = data.get('categories')
    if isinstance(categories, list) and categories:
        return ", ".join(str(c) for c in categories)
    return _text(categories)


def _prowlarr_title(item: EventRecord) -> Optional[str]:
    data = item.data or {}
    kind = (item.event_type or "").lower()

    if 'grab' in kind or 'release' in kind:
        release = (_release_title(data) or _text(item.title) or _text(item.source_title))
        if release and release != "Untitled":
            return release

    release = _release_title(data)
    if release:
        return release

    term = _search_term(data)
    if term:
        return f'Search: "{term}"'

    if 'query' in kind or 'rss' in kind:
        categories = _categories(data)
        if categories:
            return f"RSS: {categories}"
        return "RSS Feed Sync" if 'rss' in kind else "Indexer Query"

    app = _text(data.get('application')) or _text(data.get('source'))
    if app:
        return f"{item.event_type or 'event'} - {app}"
    return None


def get_display_title(item: EventRecord) -> str:
    """Human readable title for a record."""
    if item.service == Service.PROWLARR:
        title = _prowlarr_title(item)
        if title:
            return title
    return _text(item.title) or _text(item.source_title) or "Unknown"


def get_indexer_details(item: EventRecord) -> str:
    """One-line Prowlarr query details (results, outcome, timing, caller)."""
    if item.service != Service.PROWLARR or not item.data:
        return ""
    data = item.data
    parts = []

    count = _number(data.get('queryResults', data.get('numberOfResults')))
    if count is not None:
        parts.append(f"{count} results")

    successful = data.get('successful')
    if isinstance(successful, bool):
        parts.append("✓ Success" if successful else "✗ Failed")
    elif isinstance(successful, str) and successful.lower() in ('true', 'false'):
        parts.append("✓ Success" if successful.lower() == 'true' else "✗ Failed")

    elapsed = _number(data.get('elapsedTime'))
    if elapsed is not None:
        parts.append(f"{elapsed}ms")

    app = _text(data.get('application')) or _text(data.get('source'))
    if app:
        parts.append(f"via {app}")

    return " • ".join(parts) or "-"
