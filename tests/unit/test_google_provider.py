"""Unit tests for the Google streaming provider with the API client mocked."""

import threading
from unittest.mock import MagicMock, patch

import pytest
from google.api_core import exceptions as gax_exceptions
from google.cloud import speech

from speech2text.models import (
    AudioEvent,
    RecognitionSettings,
    RecognitionStarted,
    RecognitionResult,
    RecognitionFailed,
    RecognitionEnded,
    TranscriptSegment,
)
from speech2text.recognition import google_provider
from speech2text.recognition.google_provider import (
    GoogleStreamingEngine,
    GoogleStreamingProvider,
    error_code_for,
)


class FakeCapture:
    """Stands in for AudioCapture; no audio is ever read.

    Like the real capture, stopping before start does nothing and stopping a
    running capture delivers the final event.
    """

    def __init__(self, callback, **kwargs):
        self.callback = callback
        self.last_error = None
        self.started = False
        self.is_recording = False
        self.stop_calls = []

    def start_recording(self):
        self.started = True
        self.is_recording = True

    def stop_recording(self, wait=True):
        self.stop_calls.append(wait)
        if not self.is_recording:
            return
        self.is_recording = False
        self.callback(AudioEvent(audio_data=b"", timestamp=0.0, sequence_number=0, final=True))


def response(*results):
    """Build a streaming response from (transcript, is_final) pairs."""
    return speech.StreamingRecognizeResponse(results=[
        speech.StreamingRecognitionResult(
            alternatives=[speech.SpeechRecognitionAlternative(transcript=text, confidence=0.9)],
            is_final=is_final,
        )
        for text, is_final in results
    ])


@pytest.fixture
def fake_capture():
    with patch.object(google_provider, "AudioCapture", FakeCapture):
        yield


def run_engine(client, settings=None):
    """Start an engine, wait for its stream thread and return the emitted events."""
    events = []
    engine = GoogleStreamingEngine(client, settings or RecognitionSettings())
    engine.start(events.append)
    engine.stream_thread.join(timeout=5.0)
    assert not engine.stream_thread.is_alive()
    return engine, events


@pytest.mark.unit
class TestGoogleStreamingEngine:

    def test_streaming_config_follows_settings(self):
        engine = GoogleStreamingEngine(MagicMock(), RecognitionSettings(language="pt-BR", continuous=False))

        assert engine.streaming_config.config.language_code == "pt-BR"
        assert engine.streaming_config.interim_results is True
        assert engine.streaming_config.single_utterance is True

    def test_responses_become_result_events(self, fake_capture):
        client = MagicMock()
        client.streaming_recognize.return_value = iter([
            response(("hel", False)),
            response(("hello", True)),
            response(("world", False)),
        ])

        engine, events = run_engine(client)

        assert events[0] == RecognitionStarted()
        assert events[-1] == RecognitionEnded()
        results = [e for e in events if isinstance(e, RecognitionResult)]
        assert [(r.result_index, [(s.text, s.is_final) for s in r.segments]) for r in results] == [
            (0, [("hel", False)]),
            (0, [("hello", True)]),
            (1, [("world", False)]),
        ]
        assert results[1].segments[0].confidence == pytest.approx(0.9)
        assert engine.capture.started

    def test_empty_responses_are_skipped(self, fake_capture):
        client = MagicMock()
        client.streaming_recognize.return_value = iter([speech.StreamingRecognizeResponse()])

        _, events = run_engine(client)

        assert events == [RecognitionStarted(), RecognitionEnded()]

    def test_api_error_becomes_failed_event(self, fake_capture):
        client = MagicMock()
        client.streaming_recognize.side_effect = gax_exceptions.ServiceUnavailable("down")

        _, events = run_engine(client)

        assert [type(e) for e in events] == [RecognitionStarted, RecognitionFailed, RecognitionEnded]
        assert events[1].code == "network"

    def test_capture_error_wins_over_api_error(self, fake_capture):
        client = MagicMock()

        def fail_after_capture(**kwargs):
            engine.capture.last_error = OSError("microphone unplugged")
            raise gax_exceptions.OutOfRange("audio timeout")

        client.streaming_recognize.side_effect = fail_after_capture
        engine = GoogleStreamingEngine(client, RecognitionSettings())
        events = []
        engine.start(events.append)
        engine.stream_thread.join(timeout=5.0)

        failed = [e for e in events if isinstance(e, RecognitionFailed)]
        assert [e.code for e in failed] == ["audio-capture"]
        assert events[-1] == RecognitionEnded()

    def test_audio_chunks_feed_requests_until_final(self):
        engine = GoogleStreamingEngine(MagicMock(), RecognitionSettings())
        engine._on_audio(AudioEvent(audio_data=b"abc", timestamp=0.0, sequence_number=1))
        engine._on_audio(AudioEvent(audio_data=b"def", timestamp=0.0, sequence_number=2))
        engine._on_audio(AudioEvent(audio_data=b"", timestamp=0.0, sequence_number=3, final=True))

        requests = list(engine._requests())

        assert [r.audio_content for r in requests] == [b"abc", b"def"]

    def test_stop_does_not_wait_for_capture(self, fake_capture):
        client = MagicMock()
        client.streaming_recognize.return_value = iter([])
        engine, _ = run_engine(client)
        calls_before = len(engine.capture.stop_calls)

        engine.stop()

        assert engine.stop_event.is_set()
        assert engine.capture.stop_calls[calls_before:] == [False]

    def test_stop_before_capture_starts_still_ends_the_run(self, fake_capture):
        started, release = threading.Event(), threading.Event()
        events = []

        def emit(event):
            events.append(event)
            if isinstance(event, RecognitionStarted):
                started.set()
                release.wait(2.0)

        def recognize(config, requests):
            # Consumes audio until the capture delivers its final chunk
            list(requests)
            return iter([])

        client = MagicMock()
        client.streaming_recognize.side_effect = recognize
        engine = GoogleStreamingEngine(client, RecognitionSettings())
        engine.start(emit)
        assert started.wait(2.0)

        engine.stop()
        release.set()
        engine.stream_thread.join(timeout=5.0)

        assert not engine.stream_thread.is_alive()
        assert engine.capture.started
        assert not engine.capture.is_recording
        assert events[-1] == RecognitionEnded()


@pytest.mark.unit
class TestErrorCodes:

    @pytest.mark.parametrize("error, code", [
        (gax_exceptions.DeadlineExceeded("slow"), "network"),
        (gax_exceptions.PermissionDenied("no"), "not-allowed"),
        (gax_exceptions.Unauthenticated("who"), "not-allowed"),
        (gax_exceptions.Cancelled("bye"), "aborted"),
        (gax_exceptions.OutOfRange("silence"), "no-speech"),
        (gax_exceptions.InternalServerError("oops"), "service-error"),
    ])
    def test_mapping(self, error, code):
        assert error_code_for(error) == code


@pytest.mark.unit
class TestGoogleStreamingProvider:

    def test_unsupported_without_credentials(self):
        assert GoogleStreamingProvider(credentials_path=None).is_supported() is False

    def test_unsupported_without_microphone(self, tmp_path):
        creds = tmp_path / "creds.json"
        creds.write_text("{}")
        with patch.object(google_provider, "has_input_device", return_value=False):
            assert GoogleStreamingProvider(credentials_path=str(creds)).is_supported() is False

    def test_supported_with_credentials_and_microphone(self, tmp_path):
        creds = tmp_path / "creds.json"
        creds.write_text("{}")
        with patch.object(google_provider, "has_input_device", return_value=True):
            assert GoogleStreamingProvider(credentials_path=str(creds)).is_supported() is True

    def test_create_engine_builds_client_once(self):
        provider = GoogleStreamingProvider(credentials_path="creds.json", sample_rate=8000)
        with patch.object(google_provider.service_account.Credentials, "from_service_account_file") as load, \
                patch.object(google_provider.speech, "SpeechClient") as client_cls:
            first = provider.create_engine(RecognitionSettings(language="it-IT"))
            second = provider.create_engine(RecognitionSettings())

        load.assert_called_once_with("creds.json")
        client_cls.assert_called_once()
        assert first.client is second.client
        assert first.sample_rate == 8000
        assert first.settings.language == "it-IT"

    def test_segments_are_transcript_segments(self, fake_capture):
        client = MagicMock()
        client.streaming_recognize.return_value = iter([response(("a", True), ("b", False))])

        _, events = run_engine(client)

        result = next(e for e in events if isinstance(e, RecognitionResult))
        assert result.segments == (
            TranscriptSegment("a", True, pytest.approx(0.9)),
            TranscriptSegment("b", False, None),
        )
