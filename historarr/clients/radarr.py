"""
Radarr API client for Historarr.
Handles the history feed and per-movie history.
"""

from typing import Dict, Any, List, Optional
from .base import BaseClient


class RadarrClient(BaseClient):
    """Client for Radarr API v3."""

    service = "radarr"

    @property
    def api_version(self) -> str:
        return "/api/v3"

    def history_params(self) -> Dict[str, Any]:
        return {'includeMovie': True}

    # ==================== History ====================

    def get_movie_history(self, movie_id: int, event_type: Optional[str] = None) -> List[Dict]:
        """Get history for one movie, newest first."""
        params: Dict[str, Any] = {'movieId': movie_id}
        if event_type:
            params['eventType'] = event_type
        result = self.get('history/movie', params=params)
        return result if isinstance(result, list) else []
