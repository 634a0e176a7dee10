"""Music catalog HTTP API: albums, artists, tracks and concerts."""

__version__ = "0.1.0"
