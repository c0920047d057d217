"""Client for the remote transcript store."""

from .client import TranscriptStoreClient

__all__ = ["TranscriptStoreClient"]
