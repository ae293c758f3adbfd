from __future__ import annotations

from datetime import timedelta

import pytest

from historarr.config import Config, ServiceInstance
from historarr.core import HistorarrCore
from historarr.logger import Logger
from tests.mock_servers import BASE_TIME, MockServerRunner


@pytest.fixture(scope="session")
def logger():
    """Console + memory logging only, no log file."""
    return Logger(log_dir=None)


@pytest.fixture(scope="session")
def mock_servers():
    runner = MockServerRunner()
    urls = runner.start()
    yield urls
    runner.stop()


@pytest.fixture
def config(tmp_path, mock_servers, monkeypatch):
    for service in Config.SERVICES:
        monkeypatch.delenv(f"{service.upper()}_URL", raising=False)
        monkeypatch.delenv(f"{service.upper()}_API_KEY", raising=False)

    cfg = Config(str(tmp_path / "config.json"))
    key = mock_servers["api_key"]
    cfg.sonarr_instances = [
        ServiceInstance(id="main", name="Sonarr Main", url=mock_servers["sonarr"], api_key=key, enabled=True),
    ]
    cfg.radarr_instances = [
        ServiceInstance(id="movies", name="Radarr", url=mock_servers["radarr"], api_key=key, enabled=True),
    ]
    cfg.prowlarr_instances = [
        ServiceInstance(id="indexers", name="Prowlarr", url=mock_servers["prowlarr"], api_key=key, enabled=True),
    ]
    cfg.setup_complete = True
    return cfg


@pytest.fixture
def core(config, logger):
    return HistorarrCore(config, logger)


@pytest.fixture
def now():
    """Three hours after the first mock history event."""
    return BASE_TIME + timedelta(hours=3)
