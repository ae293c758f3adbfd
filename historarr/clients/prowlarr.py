"""
Prowlarr API client for Historarr.
Prowlarr history holds indexer queries, RSS polls and release grabs.
"""

from .base import BaseClient


class ProwlarrClient(BaseClient):
    """Client for Prowlarr API v1."""

    service = "prowlarr"

    @property
    def api_version(self) -> str:
        return "/api/v1"
