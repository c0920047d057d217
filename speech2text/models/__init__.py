"""Data models for the Speech2Text application."""

from .transcription import TranscriptSegment, SavedTranscript
from .session import SessionStatus, RecognitionSettings
from .events import (
    AudioEvent,
    RecognitionEvent,
    RecognitionStarted,
    RecognitionResult,
    RecognitionFailed,
    RecognitionEnded,
)

__all__ = [
    "TranscriptSegment",
    "SavedTranscript",
    "SessionStatus",
    "RecognitionSettings",
    # Events
    "AudioEvent",
    "RecognitionEvent",
    "RecognitionStarted",
    "RecognitionResult",
    "RecognitionFailed",
    "RecognitionEnded",
]
