"""Recognition session models."""

from dataclasses import dataclass
from enum import Enum


class SessionStatus(Enum):
    """Lifecycle of a recognition session."""
    IDLE = "idle"
    LISTENING = "listening"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass(frozen=True)
class RecognitionSettings:
    """Configuration fixed when a recognition session is created."""
    language: str = "en-US"
    continuous: bool = True
    interim_results: bool = True
