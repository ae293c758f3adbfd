"""
Readarr API client for Historarr.
"""

from typing import Dict, Any
from .base import BaseClient


class ReadarrClient(BaseClient):
    """Client for Readarr API v1."""

    service = "readarr"

    @property
    def api_version(self) -> str:
        return "/api/v1"

    def history_params(self) -> Dict[str, Any]:
        return {'includeAuthor': True, 'includeBook': True}
