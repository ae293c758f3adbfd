"""
Lifecycle stages for grouped history.
Turns a group of events into the ordered stages it went through
(Grabbed -> Imported -> Upgraded -> Deleted...).
"""

from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List

from .records import EventRecord
from .rules import STAGE_RULES, classify


@dataclass(frozen=True)
class LifecycleStage:
    """A stage a download passed through."""
    stage: str
    label: str
    color: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


STAGES: Dict[str, LifecycleStage] = {
    'grabbed': LifecycleStage('grabbed', 'Grabbed', 'info'),
    'imported': LifecycleStage('imported', 'Imported', 'success'),
    'failed': LifecycleStage('failed', 'Failed', 'error'),
    'deleted': LifecycleStage('deleted', 'Deleted', 'error'),
    'upgraded': LifecycleStage('upgraded', 'Upgraded', 'warning'),
    'renamed': LifecycleStage('renamed', 'Renamed', 'warning'),
}


def detect_lifecycle_stages(items: Iterable[EventRecord]) -> List[LifecycleStage]:
    """Stages in the order they were first reached, each at most once.

    A single event has no lifecycle, so groups of one return [].
    """
    items = list(items)
    if len(items) <= 1:
        return []

    stages: List[LifecycleStage] = []
    seen = set()
    for item in sorted(items, key=lambda i: i.timestamp):
        tag = classify(item.kind, STAGE_RULES)
        if tag is None or tag in seen:
            continue
        seen.add(tag)
        stages.append(STAGES[tag])
    return stages
