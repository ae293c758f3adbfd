"""
Lidarr API client for Historarr.
Lidarr history holds album/track grabs and imports.
"""

from typing import Dict, Any
from .base import BaseClient


class LidarrClient(BaseClient):
    """Client for Lidarr API v1."""

    service = "lidarr"

    @property
    def api_version(self) -> str:
        return "/api/v1"

    def history_params(self) -> Dict[str, Any]:
        # Artist/album objects carry the titles shown for each event
        return {'includeArtist': True, 'includeAlbum': True}
