"""
Historarr - Download lifecycle history for the *arr stack (Sonarr, Radarr,
Prowlarr, Lidarr, Readarr).
Pulls the history feed of every configured instance and groups related
events (grab, import, upgrade, delete) into one timeline entry per download.
"""

__version__ = "1.0.0"
__app_name__ = "Historarr"

from .config import Config
from .logger import Logger
