"""Terminal client for the yt-rss video-to-podcast service."""

__version__ = "0.1.0"
