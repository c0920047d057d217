"""Session controller tying recognition, transcript assembly and the store together."""

import logging
from typing import Callable, List, Optional

from ..errors import (
    AlreadyStartedError,
    PersistenceError,
    RecognitionError,
    UnsupportedCapabilityError,
)
from ..models.events import (
    RecognitionEvent,
    RecognitionStarted,
    RecognitionResult,
    RecognitionFailed,
    RecognitionEnded,
)
from ..models.session import SessionStatus
from ..models.transcription import SavedTranscript
from ..recognition.assembler import TranscriptAssembler
from ..recognition.base import RecognitionProvider
from ..recognition.session import RecognitionSession, Dispatcher, create_session
from ..storage.client import TranscriptStoreClient

logger = logging.getLogger(__name__)

MSG_LISTENING = "Listening..."
MSG_STOPPED = "Stopped listening."
MSG_NO_SPEECH = "No speech detected or recognized."
MSG_ALREADY_STARTED = "Recognition already started."
MSG_NOTHING_TO_SAVE = "Nothing to save. Please speak first."
MSG_SAVED = "Transcription saved successfully!"
MSG_SAVE_IN_PROGRESS = "A save is already in progress."


class SessionController:
    """Owns the recognition session and the state shown to the user.

    All methods and event handlers are expected to run on one thread; the
    recognition session's ``dispatch`` hook is how events get there. Errors
    never escape: each one ends up as the single status ``message``.

    Typical use::

        async with SessionController(provider, store) as controller:
            controller.start()
            ...
            await controller.save()
    """

    def __init__(self,
                 provider: RecognitionProvider,
                 store: TranscriptStoreClient,
                 language: str = "en-US",
                 continuous: bool = True,
                 interim_results: bool = True,
                 dispatch: Optional[Dispatcher] = None):
        self.provider = provider
        self.store = store
        self.language = language
        self.continuous = continuous
        self.interim_results = interim_results
        self.dispatch = dispatch

        self.session: Optional[RecognitionSession] = None
        self.assembler = TranscriptAssembler()
        self.message = ""
        self._saved: List[SavedTranscript] = []
        self._saving = False
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._supported = False

    # Lifecycle

    async def open(self) -> None:
        """Load the saved transcripts and create the recognition session."""
        await self.refresh()
        try:
            self.session = create_session(
                self.provider,
                language=self.language,
                continuous=self.continuous,
                interim_results=self.interim_results,
                dispatch=self.dispatch,
            )
        except UnsupportedCapabilityError as e:
            logger.warning(f"Recognition unavailable: {e}")
            self._supported = False
            self.message = str(e)
        else:
            self._supported = True
            self._unsubscribe = self.session.on_event(self._on_event)

    def close(self) -> None:
        """Stop any active capture and release the session."""
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        if self.session:
            self.session.close()
        logger.info("SessionController closed")

    async def __aenter__(self) -> "SessionController":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    # State

    @property
    def status(self) -> SessionStatus:
        return self.session.status if self.session else SessionStatus.IDLE

    @property
    def transcript(self) -> str:
        return self.assembler.text

    @property
    def saved(self) -> List[SavedTranscript]:
        return list(self._saved)

    @property
    def is_supported(self) -> bool:
        return self._supported

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def can_start(self) -> bool:
        return self._supported and self.status is not SessionStatus.LISTENING

    @property
    def can_stop(self) -> bool:
        return self._supported and self.status is SessionStatus.LISTENING

    @property
    def can_save(self) -> bool:
        return bool(self.transcript.strip()) and not self._saving

    # User actions

    def start(self) -> None:
        """Start a new recognition run, clearing the previous transcript."""
        if not self._supported:
            logger.warning("Start requested but recognition is not supported")
            return
        if self.status is SessionStatus.LISTENING:
            self.message = MSG_ALREADY_STARTED
            return

        self.assembler.reset()
        self.message = ""
        try:
            self.session.start()
        except AlreadyStartedError as e:
            logger.warning(f"Start ignored: {e}")
            self.message = str(e)
        except RecognitionError as e:
            logger.error(f"Could not start recognition: {e}")
            self.message = f"Speech recognition error: {e.code}"

    def stop(self) -> None:
        """Stop listening; the end event updates status and message."""
        if self.session:
            self.session.stop()

    async def save(self) -> Optional[SavedTranscript]:
        """Persist the current transcript.

        Returns:
            The created record, or None if nothing was saved
        """
        text = self.transcript
        if not text.strip():
            self.message = MSG_NOTHING_TO_SAVE
            return None
        if self._saving:
            self.message = MSG_SAVE_IN_PROGRESS
            return None

        self._saving = True
        try:
            record = await self.store.save(text)
        except PersistenceError as e:
            logger.error(f"Error saving transcription: {e}")
            self.message = f"Error saving transcription: {e}"
            return None
        finally:
            self._saving = False

        self._saved.insert(0, record)
        self.assembler.reset()
        self.message = MSG_SAVED
        return record

    async def refresh(self) -> None:
        """Reload the saved transcripts from the store."""
        try:
            self._saved = await self.store.list()
        except PersistenceError as e:
            logger.error(f"Error fetching transcriptions: {e}")
            self.message = f"Error fetching transcriptions: {e}"

    # Recognition events

    def _on_event(self, event: RecognitionEvent) -> None:
        if isinstance(event, RecognitionStarted):
            self.message = MSG_LISTENING
        elif isinstance(event, RecognitionResult):
            self.assembler.apply(event)
        elif isinstance(event, RecognitionFailed):
            logger.error(f"Speech recognition error: {event.code} ({event.message})")
            self.message = f"Speech recognition error: {event.code}"
        elif isinstance(event, RecognitionEnded):
            if self.status is SessionStatus.ERROR:
                return
            if self.transcript.strip():
                self.message = MSG_STOPPED
            else:
                self.message = MSG_NO_SPEECH
