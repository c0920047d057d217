"""Event models published by audio capture and recognition sessions."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from .transcription import TranscriptSegment


@dataclass
class AudioEvent:
    """Audio chunk captured from the microphone."""
    audio_data: bytes
    timestamp: float  # Unix timestamp when chunk was captured
    sequence_number: int
    sample_rate: int = 16000
    channels: int = 1
    final: bool = False  # True for the last chunk of a capture


@dataclass(frozen=True)
class RecognitionEvent:
    """Base class for everything a recognition session emits."""
    timestamp: datetime = field(default_factory=datetime.now, compare=False)


@dataclass(frozen=True)
class RecognitionStarted(RecognitionEvent):
    """The recognizer began capturing audio."""


@dataclass(frozen=True)
class RecognitionResult(RecognitionEvent):
    """Incremental results from the recognizer.

    ``segments[i]`` sits at position ``result_index + i`` of the logical
    results list of the current run. Positions below ``result_index`` were
    finalized by earlier events.
    """
    result_index: int = 0
    segments: Tuple[TranscriptSegment, ...] = ()


@dataclass(frozen=True)
class RecognitionFailed(RecognitionEvent):
    """The recognizer reported an error; the run is over."""
    code: str = "aborted"
    message: Optional[str] = None


@dataclass(frozen=True)
class RecognitionEnded(RecognitionEvent):
    """Terminal event of a run, delivered even when nothing was heard."""
