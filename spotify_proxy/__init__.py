"""Local Spotify proxy: one-time OAuth authorization plus playback and listening-history endpoints."""

__version__ = "0.1.0"
