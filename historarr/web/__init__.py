"""Web API for Historarr."""

from .server import WebServer

__all__ = ['WebServer']
