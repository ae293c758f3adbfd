from __future__ import annotations

from historarr.history import build_external_link, get_source_client
from tests.factories import make_record


def test_series_link_prefers_slug() -> None:
    record = make_record(series_id=101, series_slug="starfall-academy")
    assert build_external_link(record, "http://sonarr:8989/") == "http://sonarr:8989/series/starfall-academy"


def test_series_link_falls_back_to_id() -> None:
    record = make_record(series_id=101)
    assert build_external_link(record, "http://sonarr:8989") == "http://sonarr:8989/series/101"


def test_movie_link() -> None:
    record = make_record(service="radarr", movie_id=1001, movie_slug="quantum-paradox-2025")
    assert build_external_link(record, "http://radarr:7878") == "http://radarr:7878/movie/quantum-paradox-2025"

    record = make_record(service="radarr", movie_id=1001)
    assert build_external_link(record, "http://radarr:7878") == "http://radarr:7878/movie/1001"


def test_link_segment_is_quoted() -> None:
    record = make_record(series_slug="a b/c")
    assert build_external_link(record, "http://sonarr") == "http://sonarr/series/a%20b%2Fc"


def test_no_link_without_url_or_id() -> None:
    record = make_record(series_id=101, series_slug="starfall-academy")
    assert build_external_link(record, None) is None
    assert build_external_link(record, "") is None
    assert build_external_link(make_record(), "http://sonarr") is None


def test_no_link_for_other_services() -> None:
    for service in ("prowlarr", "lidarr", "readarr"):
        record = make_record(service=service, series_id=1, movie_id=1)
        assert build_external_link(record, "http://host") is None


def test_grab_names_the_indexer() -> None:
    record = make_record(event_type="grabbed", indexer="Fictional Indexer", download_client="SABnzbd")
    assert get_source_client(record) == ("Fictional Indexer", "indexer")


def test_import_names_the_download_client() -> None:
    record = make_record(event_type="downloadFolderImported", indexer="Fictional Indexer",
                         download_client="SABnzbd")
    assert get_source_client(record) == ("SABnzbd", "client")


def test_source_falls_back_to_the_other_kind() -> None:
    grab = make_record(event_type="grabbed", download_client="SABnzbd")
    assert get_source_client(grab) == ("SABnzbd", "client")

    imported = make_record(event_type="downloadFolderImported", indexer="Fictional Indexer")
    assert get_source_client(imported) == ("Fictional Indexer", "indexer")

    assert get_source_client(make_record(event_type="episodeFileDeleted")) == (None, None)


def test_prowlarr_events_name_the_indexer() -> None:
    record = make_record(service="prowlarr", event_type="indexerQuery", indexer="Fictional Indexer",
                         download_client="qBittorrent")
    assert get_source_client(record) == ("Fictional Indexer", "indexer")
