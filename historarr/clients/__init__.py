"""API Clients for external services."""

from .base import BaseClient, APIError, extract_records
from .sonarr import SonarrClient
from .radarr import RadarrClient
from .prowlarr import ProwlarrClient
from .lidarr import LidarrClient
from .readarr import ReadarrClient

CLIENT_CLASSES = {
    'sonarr': SonarrClient,
    'radarr': RadarrClient,
    'prowlarr': ProwlarrClient,
    'lidarr': LidarrClient,
    'readarr': ReadarrClient,
}

__all__ = ['BaseClient', 'APIError', 'extract_records', 'SonarrClient',
           'RadarrClient', 'ProwlarrClient', 'LidarrClient', 'ReadarrClient',
           'CLIENT_CLASSES']
