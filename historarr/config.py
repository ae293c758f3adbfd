"""
Configuration management for Historarr.
Supports JSON file and environment variable configuration.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, asdict
from typing import Dict, Any, List
import threading


log = logging.getLogger("historarr.config")


@dataclass
class ServiceInstance:
    """Configuration for a single service instance."""
    id: str = ""
    name: str = ""
    url: str = ""
    api_key: str = ""
    enabled: bool = False

    def __post_init__(self):
        # Older configs only carry a name
        if not self.id:
            self.id = self.name

    def is_valid(self) -> bool:
        return bool(self.url and self.api_key and self.enabled)


@dataclass
class HistorySettings:
    """
    History grouping and fetching settings.

    The windows decide which events are treated as one download:
        rss_window_minutes:      Prowlarr RSS polls in one bucket collapse together
        media_window_minutes:    same episode/movie + quality without a download id
        release_window_minutes:  same release title + quality, last resort
        delete_attach_minutes:   how far a delete may be from a group to join it

    Slow download clients may need wider media/delete windows.
    """
    rss_window_minutes: int = 5
    media_window_minutes: int = 30
    release_window_minutes: int = 1
    delete_attach_minutes: int = 120
    min_download_id_length: int = 10
    activity_window_hours: int = 24
    group_by_download: bool = True
    # Fetching
    page_size: int = 500
    max_pages: int = 50
    cache_ttl_seconds: int = 60


class Config:
    """Main configuration class."""

    SERVICES = ('sonarr', 'radarr', 'prowlarr', 'lidarr', 'readarr')

    def __init__(self, config_path: str = "/config/config.json"):
        self.config_path = Path(config_path)
        self._lock = threading.RLock()

        # Service instances (support multiple)
        self.sonarr_instances: List[ServiceInstance] = []
        self.radarr_instances: List[ServiceInstance] = []
        self.prowlarr_instances: List[ServiceInstance] = []
        self.lidarr_instances: List[ServiceInstance] = []
        self.readarr_instances: List[ServiceInstance] = []

        self.history = HistorySettings()

        # App settings
        self.app_name = "Historarr"
        self.setup_complete = False
        self.debug_mode = False

        # Load existing config or create default
        self._load()
        self._apply_env_vars()

    def _load(self):
        """Load configuration from file."""
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r') as f:
                    data = json.load(f)
                self._apply_dict(data)
            except (OSError, ValueError, TypeError) as e:
                log.warning(f"Could not load config {self.config_path}: {e}")

    def _apply_dict(self, data: Dict[str, Any]):
        """Apply dictionary to configuration."""
        for service in self.SERVICES:
            key = f'{service}_instances'
            if key in data:
                setattr(self, key, [ServiceInstance(**inst) for inst in data[key]])

        if 'history' in data:
            self.history = HistorySettings(**data['history'])

        # App settings
        self.app_name = data.get('app_name', self.app_name)
        self.setup_complete = data.get('setup_complete', self.setup_complete)
        self.debug_mode = data.get('debug_mode', self.debug_mode)

    def _apply_env_vars(self):
        """Apply environment variable overrides."""
        # Support single instance via env vars for docker setups
        for service in self.SERVICES:
            url = os.environ.get(f'{service.upper()}_URL')
            api_key = os.environ.get(f'{service.upper()}_API_KEY')
            instances = self.instances_for(service)
            if url and api_key and not instances:
                instances.append(ServiceInstance(
                    id=service,
                    name=service.capitalize(),
                    url=url,
                    api_key=api_key,
                    enabled=True
                ))
                self.setup_complete = True

    def save(self):
        """Save configuration to file."""
        with self._lock:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)

            data = self.to_dict()
            data['app_name'] = self.app_name

            with open(self.config_path, 'w') as f:
                json.dump(data, f, indent=2)

    def update(self, data: Dict[str, Any]):
        """Update configuration from dictionary."""
        with self._lock:
            self._apply_dict(data)
        self.save()

    def is_configured(self) -> bool:
        """Check if initial setup is complete."""
        return self.setup_complete

    def instances_for(self, service: str) -> List[ServiceInstance]:
        """All configured instances of a service."""
        if service not in self.SERVICES:
            raise ValueError(f"Unknown service: {service}")
        return getattr(self, f'{service}_instances')

    def get_enabled(self, service: str) -> List[ServiceInstance]:
        """Enabled, fully configured instances of a service."""
        return [inst for inst in self.instances_for(service) if inst.is_valid()]

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary (for API)."""
        data: Dict[str, Any] = {
            f'{service}_instances': [asdict(inst) for inst in self.instances_for(service)]
            for service in self.SERVICES
        }
        data.update({
            'history': asdict(self.history),
            'setup_complete': self.setup_complete,
            'debug_mode': self.debug_mode,
        })
        return data
