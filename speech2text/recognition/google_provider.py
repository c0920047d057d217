"""Google Speech-to-Text streaming recognition provider."""

import queue
import logging
from pathlib import Path
from threading import Thread, Event
from typing import Iterator, Optional

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

from ..audio.capture import AudioCapture, has_input_device
from ..models.events import (
    AudioEvent,
    RecognitionStarted,
    RecognitionResult,
    RecognitionFailed,
    RecognitionEnded,
)
from ..models.session import RecognitionSettings
from ..models.transcription import TranscriptSegment
from .base import RecognitionEngine, RecognitionProvider, EventCallback

logger = logging.getLogger(__name__)

# Google API errors mapped onto the browser recognition error vocabulary
ERROR_CODES = (
    (gax_exceptions.DeadlineExceeded, "network"),
    (gax_exceptions.ServiceUnavailable, "network"),
    (gax_exceptions.PermissionDenied, "not-allowed"),
    (gax_exceptions.Unauthenticated, "not-allowed"),
    (gax_exceptions.Cancelled, "aborted"),
    (gax_exceptions.Aborted, "aborted"),
    (gax_exceptions.OutOfRange, "no-speech"),
)


def error_code_for(error: gax_exceptions.GoogleAPICallError) -> str:
    for exc_type, code in ERROR_CODES:
        if isinstance(error, exc_type):
            return code
    return "service-error"


class GoogleStreamingEngine(RecognitionEngine):
    """Streams microphone audio to Google and turns responses into events."""

    def __init__(self,
                 client: speech.SpeechClient,
                 settings: RecognitionSettings,
                 sample_rate: int = 16000,
                 chunk_size: int = 1024,
                 channels: int = 1,
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True):
        super().__init__(settings)
        self.client = client
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.streaming_config = speech.StreamingRecognitionConfig(
            config=speech.RecognitionConfig(
                encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
                sample_rate_hertz=sample_rate,
                audio_channel_count=channels,
                language_code=settings.language,
                use_enhanced=use_enhanced,
                enable_automatic_punctuation=enable_automatic_punctuation,
            ),
            interim_results=settings.interim_results,
            single_utterance=not settings.continuous,
        )
        self.capture: Optional[AudioCapture] = None
        self.stream_thread: Optional[Thread] = None
        self.stop_event = Event()
        self._audio_queue: "queue.Queue[Optional[bytes]]" = queue.Queue()
        self._emit: Optional[EventCallback] = None
        self._finalized = 0

    def start(self, emit: EventCallback) -> None:
        self._emit = emit
        self._finalized = 0
        self._audio_queue = queue.Queue()
        self.stop_event.clear()
        self.capture = AudioCapture(
            callback=self._on_audio,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            channels=self.channels,
        )
        self.stream_thread = Thread(target=self._stream, daemon=True)
        self.stream_thread.name = "GoogleStreamingThread"
        self.stream_thread.start()

    def stop(self) -> None:
        """Request the end of the run without blocking the caller.

        The stream thread finishes the capture and emits RecognitionEnded.
        """
        self.stop_event.set()
        if self.capture:
            self.capture.stop_recording(wait=False)

    def _on_audio(self, event: AudioEvent) -> None:
        if event.audio_data:
            self._audio_queue.put(event.audio_data)
        if event.final:
            self._audio_queue.put(None)

    def _requests(self) -> Iterator[speech.StreamingRecognizeRequest]:
        while True:
            chunk = self._audio_queue.get()
            if chunk is None:
                return
            yield speech.StreamingRecognizeRequest(audio_content=chunk)

    def _stream(self) -> None:
        self._emit(RecognitionStarted())
        failure: Optional[RecognitionFailed] = None
        try:
            self.capture.start_recording()
            # stop() may have run before the capture thread existed
            if self.stop_event.is_set():
                self.capture.stop_recording(wait=False)
            responses = self.client.streaming_recognize(
                config=self.streaming_config,
                requests=self._requests(),
            )
            for response in responses:
                if response.error.code:
                    logger.error(f"Google streaming error: {response.error.message}")
                    failure = RecognitionFailed(code="service-error", message=response.error.message)
                    break
                self._handle_response(response)
        except gax_exceptions.GoogleAPICallError as e:
            logger.error(f"Google streaming recognition failed: {e}")
            failure = RecognitionFailed(code=error_code_for(e), message=str(e))
        except Exception as e:
            logger.exception(f"Unexpected error in streaming recognition: {e}")
            failure = RecognitionFailed(code="aborted", message=str(e))

        self.capture.stop_recording()
        # A dead microphone explains whatever the API said afterwards
        if self.capture.last_error is not None:
            failure = RecognitionFailed(code="audio-capture", message=str(self.capture.last_error))
        if failure is not None:
            self._emit(failure)
        self._emit(RecognitionEnded())

    def _handle_response(self, response: speech.StreamingRecognizeResponse) -> None:
        segments = []
        for result in response.results:
            if not result.alternatives:
                continue
            alternative = result.alternatives[0]
            segments.append(TranscriptSegment(
                text=alternative.transcript,
                is_final=result.is_final,
                confidence=alternative.confidence if result.is_final else None,
            ))
        if not segments:
            return

        event = RecognitionResult(result_index=self._finalized, segments=tuple(segments))
        self._finalized += sum(1 for segment in segments if segment.is_final)
        logger.debug(f"Google result at {event.result_index}: "
                     f"{[(s.text, s.is_final) for s in segments]}")
        self._emit(event)


class GoogleStreamingProvider(RecognitionProvider):
    """Recognition backed by Google Cloud streaming speech recognition."""

    def __init__(self,
                 credentials_path: Optional[str] = None,
                 sample_rate: int = 16000,
                 chunk_size: int = 1024,
                 channels: int = 1,
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True):
        self.credentials_path = credentials_path
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.client: Optional[speech.SpeechClient] = None

    @classmethod
    def from_config(cls, config) -> "GoogleStreamingProvider":
        return cls(
            credentials_path=config.get_google_credentials_path(),
            sample_rate=config.get('audio.sample_rate', 16000),
            chunk_size=config.get('audio.chunk_size', 1024),
            channels=config.get('audio.channels', 1),
            use_enhanced=config.get('google_cloud.use_enhanced_model', True),
            enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True),
        )

    def is_supported(self) -> bool:
        if not self.credentials_path or not Path(self.credentials_path).exists():
            logger.warning("Google credentials not configured; recognition unavailable")
            return False
        return has_input_device()

    def create_engine(self, settings: RecognitionSettings) -> GoogleStreamingEngine:
        if self.client is None:
            logger.info(f"Loading Google credentials from: {self.credentials_path}")
            credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
            self.client = speech.SpeechClient(credentials=credentials)
            logger.info(f"Using Google Cloud project: {credentials.project_id}")
        return GoogleStreamingEngine(
            self.client,
            settings,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            channels=self.channels,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
        )
