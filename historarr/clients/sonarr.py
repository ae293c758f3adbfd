"""
Sonarr API client for Historarr.
Handles the history feed and per-episode history.
"""

from typing import Dict, Any, List, Optional
from .base import BaseClient


class SonarrClient(BaseClient):
    """Client for Sonarr API v3."""

    service = "sonarr"

    @property
    def api_version(self) -> str:
        return "/api/v3"

    def history_params(self) -> Dict[str, Any]:
        # Series/episode objects carry the titles shown for each event
        return {
            'includeSeries': True,
            'includeEpisode': True
        }

    # ==================== History ====================

    def get_episode_history(self, episode_id: int, event_type: Optional[str] = None) -> List[Dict]:
        """Get history for one episode, newest first."""
        params: Dict[str, Any] = {'episodeId': episode_id}
        if event_type:
            params['eventType'] = event_type
        result = self.get('history/episode', params=params)
        return result if isinstance(result, list) else []
