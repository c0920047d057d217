"""Recognition session: wraps an engine and publishes its events via pubsub."""

import logging
import uuid
from typing import Callable, Optional

from pubsub import pub

from ..errors import AlreadyStartedError, RecognitionError, UnsupportedCapabilityError
from ..models.events import (
    RecognitionEvent,
    RecognitionStarted,
    RecognitionFailed,
    RecognitionEnded,
)
from ..models.session import SessionStatus, RecognitionSettings
from .base import RecognitionEngine, RecognitionProvider

logger = logging.getLogger(__name__)

EventHandler = Callable[[RecognitionEvent], None]
Dispatcher = Callable[[Callable[[], None]], None]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class RecognitionSession:
    """Handle for one configured recognizer.

    Events coming from the engine are passed through ``dispatch`` before being
    published, so a caller running an event loop can have them delivered on
    its own thread (e.g. ``loop.call_soon_threadsafe``). Handlers subscribe
    with :meth:`on_event`; pubsub keeps weak references, so handlers must be
    kept alive by the subscriber.
    """

    def __init__(self, engine: RecognitionEngine, dispatch: Optional[Dispatcher] = None):
        self.engine = engine
        self.settings: RecognitionSettings = engine.settings
        self.session_id = uuid.uuid4().hex
        self.topic = f"recognition_{self.session_id}"
        self.status = SessionStatus.IDLE
        self._dispatch = dispatch or _call_now
        # True from start() until the run's RecognitionEnded is published
        self._active = False
        self._closed = False
        logger.info(f"RecognitionSession {self.session_id} created "
                    f"(lang={self.settings.language}, continuous={self.settings.continuous}, "
                    f"interim={self.settings.interim_results})")

    @property
    def is_active(self) -> bool:
        return self._active

    def on_event(self, handler: EventHandler) -> Callable[[], None]:
        """Subscribe ``handler`` to this session's events.

        Returns:
            A callable that removes the subscription
        """
        pub.subscribe(handler, self.topic)

        def unsubscribe() -> None:
            if pub.isSubscribed(handler, self.topic):
                pub.unsubscribe(handler, self.topic)

        return unsubscribe

    def start(self) -> None:
        """Begin capturing audio.

        Raises:
            AlreadyStartedError: if a run is already in progress
            RecognitionError: if the engine could not be started
        """
        if self._closed:
            raise RecognitionError("aborted", "Recognition session is closed")
        if self._active:
            raise AlreadyStartedError()

        self._active = True
        try:
            self.engine.start(self._emit)
        except Exception as e:
            self._active = False
            logger.error(f"Engine failed to start for session {self.session_id}: {e}")
            raise RecognitionError("start-failed", str(e)) from e

    def stop(self) -> None:
        """End capture; the engine delivers RecognitionEnded afterwards."""
        if not self._active:
            logger.debug(f"Session {self.session_id} not active, nothing to stop")
            return
        logger.info(f"Stopping recognition session {self.session_id}")
        self.engine.stop()

    def close(self) -> None:
        """Stop any active capture and drop all subscriptions."""
        if self._closed:
            return
        self.stop()
        self._closed = True
        if pub.getDefaultTopicMgr().getTopic(self.topic, okIfNone=True) is not None:
            pub.unsubAll(topicName=self.topic)
        logger.info(f"RecognitionSession {self.session_id} closed")

    def _emit(self, event: RecognitionEvent) -> None:
        # A background engine can still finish after close(), when the
        # dispatcher's event loop may already be gone
        if self._closed:
            logger.debug(f"Session {self.session_id} closed, dropping {type(event).__name__}")
            return
        self._dispatch(lambda: self._publish(event))

    def _publish(self, event: RecognitionEvent) -> None:
        if isinstance(event, RecognitionStarted):
            self.status = SessionStatus.LISTENING
        elif isinstance(event, RecognitionFailed):
            self.status = SessionStatus.ERROR
        elif isinstance(event, RecognitionEnded):
            self._active = False
            if self.status is not SessionStatus.ERROR:
                self.status = SessionStatus.STOPPED

        logger.debug(f"Session {self.session_id} event: {type(event).__name__}")
        if self._closed:
            return
        pub.sendMessage(self.topic, event=event)


def create_session(provider: RecognitionProvider,
                   language: str = "en-US",
                   continuous: bool = True,
                   interim_results: bool = True,
                   dispatch: Optional[Dispatcher] = None) -> RecognitionSession:
    """Create a recognition session bound to the given configuration.

    Raises:
        UnsupportedCapabilityError: if the provider reports no recognition support
    """
    if not provider.is_supported():
        raise UnsupportedCapabilityError(
            "Speech recognition is not supported by this host. Check microphone and credentials."
        )
    settings = RecognitionSettings(
        language=language,
        continuous=continuous,
        interim_results=interim_results,
    )
    return RecognitionSession(provider.create_engine(settings), dispatch=dispatch)
