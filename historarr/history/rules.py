"""
Event classification rules.

Services report event types as free text (grabbed, downloadFolderImported,
episodeFileDeleted, indexerRss...), and new spellings show up with new
releases. Rules are ordered (predicate, tag) pairs evaluated first match
wins, so an unknown spelling simply classifies as None.
"""

from typing import Callable, List, Optional, Tuple

Rule = Tuple[Callable[[str], bool], str]


def contains(*needles: str) -> Callable[[str], bool]:
    """Predicate matching when any needle is a substring of the kind."""
    def predicate(kind: str) -> bool:
        return any(needle in kind for needle in needles)
    return predicate


def classify(kind: Optional[str], rules: List[Rule]) -> Optional[str]:
    """Return the tag of the first rule matching kind (case-insensitive)."""
    normalized = (kind or "").lower()
    if not normalized:
        return None
    for predicate, tag in rules:
        if predicate(normalized):
            return tag
    return None


# Lifecycle stages. First match wins, so downloadFailed / importFailed
# read as imports.
STAGE_RULES: List[Rule] = [
    (contains('grab'), 'grabbed'),
    (contains('import', 'download'), 'imported'),
    (contains('fail', 'error', 'reject'), 'failed'),
    (contains('delete', 'removed'), 'deleted'),
    (contains('upgrade'), 'upgraded'),
    (contains('renam'), 'renamed'),
]

# Activity counters, one bucket per event
ACTIVITY_RULES: List[Rule] = [
    (contains('grab'), 'grabs'),
    (contains('import', 'download'), 'imports'),
    (contains('fail', 'error', 'reject'), 'failures'),
]

# Badge colors
BADGE_RULES: List[Rule] = [
    (contains('fail', 'error', 'reject'), 'error'),
    (contains('download', 'import'), 'success'),
    (contains('delete', 'removed'), 'error'),
    (contains('ignored', 'skip', 'renam', 'upgrade'), 'warning'),
    (contains('grab', 'query', 'rss'), 'info'),
]


def status_badge(kind: Optional[str]) -> str:
    """Semantic color tag for an event kind ('default' when unrecognized)."""
    return classify(kind, BADGE_RULES) or 'default'
