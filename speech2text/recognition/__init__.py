"""Speech recognition: providers, sessions and transcript assembly."""

from .base import RecognitionEngine, RecognitionProvider
from .session import RecognitionSession, create_session
from .assembler import TranscriptAssembler

__all__ = [
    "RecognitionEngine",
    "RecognitionProvider",
    "RecognitionSession",
    "create_session",
    "TranscriptAssembler",
]
