from historarr.config import ServiceInstance


def _titles(view):
    return [group["title"] for group in view["groups"]]


def _ids(group):
    return [item["id"] for item in group["items"]]


def test_fetch_aggregates_all_instances(core) -> None:
    history = core.fetch_history()

    assert history["total_count"] == 10
    assert [(i["service"], i["total_records"], i["error"]) for i in history["instances"]] == [
        ("sonarr", 4, None), ("radarr", 2, None), ("prowlarr", 4, None),
    ]
    stamps = [record.timestamp for record in history["aggregated"]]
    assert stamps == sorted(stamps, reverse=True)


def test_failing_instance_does_not_hide_others(core, config, mock_servers) -> None:
    config.sonarr_instances.append(ServiceInstance(
        id="broken", name="Broken Sonarr", url=mock_servers["sonarr"] + "/broken",
        api_key=mock_servers["api_key"], enabled=True,
    ))
    core.reinit_clients()

    history = core.fetch_history()
    broken = [i for i in history["instances"] if i["instance_id"] == "broken"]

    assert history["total_count"] == 10
    assert "500" in broken[0]["error"]

    result = core.refresh_history()
    assert result["success"] is False
    assert result["failed_instances"] == ["Broken Sonarr"]
    assert result["total_count"] == 10


def test_disabled_instances_are_skipped(core, config) -> None:
    config.radarr_instances[0].enabled = False
    core.reinit_clients()

    assert core.clients["radarr"] == {}
    assert core.fetch_history()["total_count"] == 8


def test_history_is_cached(core) -> None:
    first = core.get_history()
    assert core.get_history() is first
    assert core.get_history(force=True) is not first


def test_cache_refetches_on_new_range(core) -> None:
    first = core.get_history()
    ranged = core.get_history(start_date="2025-03-14T00:00:00Z")
    assert ranged is not first
    assert core.get_history(start_date="2025-03-14T00:00:00Z") is ranged


def test_cache_invalidated_by_reinit(core) -> None:
    first = core.get_history()
    core.reinit_clients()
    assert core.get_history() is not first


def test_history_view_groups_lifecycles(core, now) -> None:
    view = core.get_history_view(now=now)

    assert view["grouped"] is True
    assert view["total_count"] == 10
    assert view["filtered_count"] == 10
    assert [_ids(group) for group in view["groups"]] == [
        [4], [3, 2, 1], [24], [12, 11], [23, 22, 21],
    ]

    imported = view["groups"][1]
    assert [s["stage"] for s in imported["stages"]] == ["grabbed", "imported", "deleted"]
    assert imported["items"][0]["event_type"] == "episodeFileDeleted"
    assert imported["relative_time"] == "2h ago"
    assert imported["badge"] == "error"

    movie = view["groups"][3]
    # downloadFailed matches the import/download rule first
    assert [s["stage"] for s in movie["stages"]] == ["grabbed", "imported"]
    assert movie["download_id"] == "SABnzbd_nzo_quantum01"
    assert movie["quality"] == "Bluray-2160p"

    rss = view["groups"][4]
    assert rss["stages"] == []
    assert rss["title"] == "RSS: 5000,5040"

    query = view["groups"][2]
    assert query["title"] == 'Search: "starfall academy"'
    assert query["items"][0]["details"] == "42 results • ✓ Success • 310ms • via Sonarr"


def test_history_view_summary(core, now) -> None:
    view = core.get_history_view(now=now)

    assert view["summary"]["activity"] == {"grabs": 3, "imports": 2, "failures": 0}
    assert view["summary"]["services"] == {"sonarr": 4, "radarr": 2, "prowlarr": 4}
    assert view["summary"]["statuses"][:2] == [
        {"label": "grabbed", "count": 3}, {"label": "indexerRss", "count": 3},
    ]
    assert view["days"] == [{"date": "2025-03-14", "label": "Today", "count": 5}]
    assert {opt["value"] for opt in view["filters"]["instances"]} == {"main", "movies", "indexers"}
    assert len(view["instances"]) == 3


def test_history_view_filters(core, now) -> None:
    view = core.get_history_view(service="radarr", now=now)
    assert view["filtered_count"] == 2
    assert [_ids(group) for group in view["groups"]] == [[12, 11]]
    # Activity cards are computed over everything
    assert view["summary"]["activity"]["grabs"] == 3

    view = core.get_history_view(search="starfall", now=now)
    assert view["filtered_count"] == 5

    view = core.get_history_view(status="downloadFailed", now=now)
    assert [_ids(group) for group in view["groups"]] == [[12]]


def test_history_view_ungrouped(core, now) -> None:
    view = core.get_history_view(group_by_download=False, now=now)

    assert view["grouped"] is False
    assert len(view["groups"]) == 10
    assert all(len(group["items"]) == 1 for group in view["groups"])


def test_history_summary(core, now) -> None:
    summary = core.get_history_summary(now=now)

    assert summary["activity"] == {"grabs": 3, "imports": 2, "failures": 0}
    assert summary["window_hours"] == 24
    assert summary["total_count"] == 10


def test_item_history_episode(core, now) -> None:
    result = core.get_item_history("sonarr", "main", 10101, now=now)

    assert result["success"] is True
    assert [_ids(group) for group in result["groups"]] == [[3, 2, 1]]


def test_item_history_movie(core, now) -> None:
    result = core.get_item_history("radarr", "movies", 1001, now=now)

    assert result["success"] is True
    assert [s["stage"] for s in result["groups"][0]["stages"]] == ["grabbed", "imported"]


def test_item_history_errors(core) -> None:
    assert core.get_item_history("sonarr", "nope", 1)["success"] is False
    assert core.get_item_history("prowlarr", "indexers", 1)["success"] is False


def test_status_reports_connections(core) -> None:
    status = core.get_status()

    assert status["configured"] is True
    assert set(status["services"]) == {"sonarr_main", "radarr_movies", "prowlarr_indexers"}
    assert all(s["connected"] for s in status["services"].values())


def test_test_service(core, mock_servers) -> None:
    ok = core.test_service("prowlarr", {"url": mock_servers["prowlarr"], "api_key": mock_servers["api_key"]})
    assert ok["success"] is True

    assert core.test_service("sonarr", {})["success"] is False
    assert core.test_service("whisparr", {"url": "http://x", "api_key": "k"}) == {
        "success": False, "message": "Unknown service",
    }


def test_history_view_links_and_sources(core, mock_servers, now) -> None:
    view = core.get_history_view(now=now)
    grab, imported, query, movie, _ = view["groups"]

    assert grab["link"] == mock_servers["sonarr"] + "/series/starfall-academy"
    assert (grab["source_client"], grab["source_kind"]) == ("Fictional Indexer", "indexer")
    assert grab["custom_formats"] == []
    assert grab["custom_format_score"] is None

    assert (imported["source_client"], imported["source_kind"]) == (None, None)
    assert imported["items"][1]["source_client"] == "SABnzbd"
    assert imported["items"][1]["source_kind"] == "client"
    assert imported["items"][1]["link"] == mock_servers["sonarr"] + "/series/starfall-academy"

    assert movie["link"] == mock_servers["radarr"] + "/movie/quantum-paradox-2025"
    assert (movie["source_client"], movie["source_kind"]) == ("SABnzbd", "client")
    assert movie["custom_formats"] == [{"id": 7, "name": "HDR10"}, {"id": 9, "name": "x265"}]
    assert movie["custom_format_score"] == 1550

    assert query["link"] is None


def test_music_and_book_trackers(core, config, mock_servers, now) -> None:
    key = mock_servers["api_key"]
    config.lidarr_instances = [
        ServiceInstance(id="music", name="Lidarr", url=mock_servers["lidarr"], api_key=key, enabled=True),
    ]
    config.readarr_instances = [
        ServiceInstance(id="books", name="Readarr", url=mock_servers["readarr"], api_key=key, enabled=True),
    ]
    core.reinit_clients()

    view = core.get_history_view(now=now)

    assert view["total_count"] == 12
    assert view["summary"]["services"] == {
        "sonarr": 4, "radarr": 2, "prowlarr": 4, "lidarr": 1, "readarr": 1,
    }
    assert view["summary"]["activity"] == {"grabs": 4, "imports": 3, "failures": 0}

    by_service = {group["service"]: group for group in view["groups"]}
    assert by_service["lidarr"]["title"] == "Nebula.Choir-Echoes.of.Tomorrow-2025-FLAC"
    assert by_service["lidarr"]["link"] is None
    assert by_service["readarr"]["title"] == "Mira Castellan"
    assert [s["stage"] for s in by_service["readarr"]["stages"]] == ["imported"]
    assert _ids(by_service["readarr"]) == [41]
