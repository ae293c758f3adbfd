from __future__ import annotations

from datetime import timedelta

from historarr.history import (
    create_activity_summary, create_service_summary, create_status_summary,
    extract_instance_options, extract_status_options, filter_history,
)
from tests.factories import T0, make_record

NOW = T0 + timedelta(hours=24)


def test_activity_counts_last_day_only() -> None:
    items = [
        make_record(-120, event_type="grabbed"),               # 26h ago
        make_record(60, event_type="grabbed"),                 # 23h ago
        make_record(61, event_type="downloadFolderImported"),
        make_record(62, event_type="failed"),
    ]
    summary = create_activity_summary(items, now=NOW)

    assert summary.to_dict() == {"grabs": 1, "imports": 1, "failures": 1}


def test_activity_each_event_counted_once() -> None:
    items = [
        make_record(60, event_type="importFailed"),
        make_record(61, event_type="grabFailed"),
        make_record(62, event_type="downloadFailed"),
        make_record(63, event_type="releaseRejected"),
    ]
    summary = create_activity_summary(items, now=NOW)

    # First matching counter wins: grab, then import/download, then failure
    assert summary.to_dict() == {"grabs": 1, "imports": 2, "failures": 1}


def test_activity_window_boundary_is_inclusive() -> None:
    items = [make_record(0, event_type="grabbed")]
    assert create_activity_summary(items, now=NOW).grabs == 1
    assert create_activity_summary(items, now=NOW + timedelta(seconds=1)).grabs == 0


def test_activity_ignores_unparseable_dates() -> None:
    items = [make_record(0, event_type="grabbed", date="nope")]
    assert create_activity_summary(items, now=NOW).grabs == 0


def test_activity_window_configurable() -> None:
    items = [make_record(-120, event_type="grabbed")]
    assert create_activity_summary(items, now=NOW, window_hours=48).grabs == 1


def test_service_summary() -> None:
    items = [
        make_record(0, service="sonarr"),
        make_record(0, service="radarr"),
        make_record(0, service="sonarr"),
    ]
    assert create_service_summary(items) == {"sonarr": 2, "radarr": 1}
    assert create_service_summary([]) == {}


def test_status_summary_most_frequent_first() -> None:
    items = [
        make_record(0, event_type="grabbed"),
        make_record(1, event_type="downloadFolderImported"),
        make_record(2, event_type="downloadFolderImported"),
        make_record(3, event_type=None, status=None),
    ]
    assert create_status_summary(items) == [
        ("downloadFolderImported", 2),
        ("grabbed", 1),
        ("Unknown", 1),
    ]


def test_status_options_first_spelling_wins() -> None:
    items = [
        make_record(0, event_type="Grabbed"),
        make_record(1, event_type="grabbed"),
        make_record(2, event_type="downloadFailed"),
    ]
    assert extract_status_options(items) == [
        {"value": "grabbed", "label": "Grabbed"},
        {"value": "downloadfailed", "label": "downloadFailed"},
    ]


def test_instance_options() -> None:
    items = [
        make_record(0, instance_id="main", instance_name="Sonarr"),
        make_record(0, instance_id="4k", instance_name=""),
        make_record(0, instance_id="main", instance_name="Sonarr Main"),
    ]
    assert extract_instance_options(items) == [
        {"value": "main", "label": "Sonarr Main"},
        {"value": "4k", "label": "4k"},
    ]


def _filter_fixture():
    return [
        make_record(0, id=1, service="sonarr", instance_id="main", event_type="grabbed",
                    title="Starfall Academy", indexer="Fictional Indexer"),
        make_record(1, id=2, service="sonarr", instance_id="4k", event_type="downloadFailed",
                    title="Starfall Academy", reason="Archive corrupt"),
        make_record(2, id=3, service="radarr", instance_id="movies", event_type="grabbed",
                    title="Quantum Paradox", download_client="SABnzbd"),
    ]


def _ids(items):
    return [item.id for item in items]


def test_filter_defaults_keep_everything() -> None:
    items = _filter_fixture()
    assert filter_history(items) == items


def test_filter_by_service_and_instance() -> None:
    items = _filter_fixture()
    assert _ids(filter_history(items, service="radarr")) == [3]
    assert _ids(filter_history(items, instance="4k")) == [2]
    assert _ids(filter_history(items, service="sonarr", instance="movies")) == []


def test_filter_by_status_case_insensitive() -> None:
    items = _filter_fixture()
    assert _ids(filter_history(items, status="Grabbed")) == [1, 3]
    assert _ids(filter_history(items, status="downloadfailed")) == [2]


def test_filter_search_covers_text_fields() -> None:
    items = _filter_fixture()
    assert _ids(filter_history(items, search="  starfall ")) == [1, 2]
    assert _ids(filter_history(items, search="corrupt")) == [2]
    assert _ids(filter_history(items, search="sabnzbd")) == [3]
    assert _ids(filter_history(items, search="fictional")) == [1]
    assert _ids(filter_history(items, search="nothing")) == []
