"""Abstract base classes for speech recognition providers."""

from abc import ABC, abstractmethod
from typing import Callable
import logging

from ..models.events import RecognitionEvent
from ..models.session import RecognitionSettings

logger = logging.getLogger(__name__)

EventCallback = Callable[[RecognitionEvent], None]


class RecognitionEngine(ABC):
    """A recognizer bound to one set of RecognitionSettings."""

    def __init__(self, settings: RecognitionSettings):
        self.settings = settings

    @abstractmethod
    def start(self, emit: EventCallback) -> None:
        """Begin capturing audio.

        Events are delivered through ``emit``, one at a time: RecognitionStarted
        first, then any number of RecognitionResult, optionally RecognitionFailed,
        and finally RecognitionEnded.
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """End capture. RecognitionEnded must follow, even if nothing was heard."""
        pass


class RecognitionProvider(ABC):
    """Host capability that can create recognition engines."""

    @abstractmethod
    def is_supported(self) -> bool:
        """Report whether recognition is available on this host."""
        pass

    @abstractmethod
    def create_engine(self, settings: RecognitionSettings) -> RecognitionEngine:
        """Create an engine configured with ``settings``."""
        pass
