"""Common FastAPI dependencies."""

from webvh.plugins import DidWebVH, LogStorage

storage = LogStorage()
webvh = DidWebVH()


def get_storage() -> LogStorage:
    """Return the log storage."""
    return storage


def get_webvh() -> DidWebVH:
    """Return the DID WebVH plugin."""
    return webvh
