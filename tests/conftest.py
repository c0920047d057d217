"""Pytest configuration and fixtures for Speech2Text tests."""

import logging
from datetime import datetime, timezone
from typing import List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from speech2text.models import (
    RecognitionSettings,
    RecognitionStarted,
    RecognitionResult,
    RecognitionFailed,
    RecognitionEnded,
    SavedTranscript,
    TranscriptSegment,
)
from speech2text.recognition.base import RecognitionEngine, RecognitionProvider


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class ScriptedEngine(RecognitionEngine):
    """Engine that emits whatever the test tells it to, synchronously."""

    def __init__(self, settings: RecognitionSettings):
        super().__init__(settings)
        self.emit = None
        self.start_calls = 0
        self.stop_calls = 0
        self.fail_on_start: Optional[Exception] = None

    def start(self, emit) -> None:
        self.start_calls += 1
        if self.fail_on_start:
            raise self.fail_on_start
        self.emit = emit
        emit(RecognitionStarted())

    def stop(self) -> None:
        self.stop_calls += 1
        if self.emit:
            self.emit(RecognitionEnded())

    def result(self, result_index: int, *segments) -> None:
        """Emit a result; segments are (text, is_final) pairs."""
        self.emit(RecognitionResult(
            result_index=result_index,
            segments=tuple(TranscriptSegment(text, is_final) for text, is_final in segments),
        ))

    def fail(self, code: str) -> None:
        self.emit(RecognitionFailed(code=code))
        self.emit(RecognitionEnded())


class ScriptedProvider(RecognitionProvider):
    """Recognition provider test double."""

    def __init__(self, supported: bool = True):
        self.supported = supported
        self.engines: List[ScriptedEngine] = []

    @property
    def engine(self) -> ScriptedEngine:
        return self.engines[-1]

    def is_supported(self) -> bool:
        return self.supported

    def create_engine(self, settings: RecognitionSettings) -> ScriptedEngine:
        engine = ScriptedEngine(settings)
        self.engines.append(engine)
        return engine


class FakeStore:
    """In-memory stand-in for TranscriptStoreClient."""

    def __init__(self, records: Optional[List[SavedTranscript]] = None):
        self.records = list(records or [])
        self.saved_texts: List[str] = []
        self.save_error: Optional[Exception] = None
        self.list_error: Optional[Exception] = None
        self.gate = None  # asyncio.Event holding saves until set

    async def save(self, text: str) -> SavedTranscript:
        self.saved_texts.append(text)
        if self.gate is not None:
            await self.gate.wait()
        if self.save_error:
            raise self.save_error
        return make_record(str(len(self.saved_texts)), text)

    async def list(self) -> List[SavedTranscript]:
        if self.list_error:
            raise self.list_error
        return list(self.records)


def make_record(record_id: str, text: str) -> SavedTranscript:
    return SavedTranscript(id=record_id, text=text,
                           timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc))


@pytest.fixture
def record_factory():
    """Build SavedTranscript records stamped 2024-01-01 UTC."""
    return make_record


class FakeStoreBackend:
    """aiohttp application imitating the transcript store API."""

    def __init__(self):
        self.records: List[dict] = []
        self.fail_status: Optional[int] = None
        self.raw_response: Optional[str] = None
        self.received: List[dict] = []

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/api/transcriptions", self.create)
        app.router.add_get("/api/transcriptions", self.list)
        return app

    async def create(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.received.append(body)
        if self.fail_status:
            return web.json_response({"message": "store unavailable"}, status=self.fail_status)
        if self.raw_response is not None:
            return web.Response(text=self.raw_response, content_type="application/json")
        record = {
            "_id": str(len(self.records) + 1),
            "text": body["text"],
            "timestamp": "2024-01-01T00:00:00Z",
        }
        self.records.append(record)
        return web.json_response(record, status=201)

    async def list(self, request: web.Request) -> web.Response:
        if self.fail_status:
            return web.json_response({"message": "store unavailable"}, status=self.fail_status)
        if self.raw_response is not None:
            return web.Response(text=self.raw_response, content_type="application/json")
        # Newest first, like the real store
        return web.json_response(list(reversed(self.records)))


@pytest.fixture
def provider():
    return ScriptedProvider()


@pytest.fixture
def unsupported_provider():
    return ScriptedProvider(supported=False)


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def store_backend():
    return FakeStoreBackend()


@pytest_asyncio.fixture
async def store_server(store_backend):
    """Run the fake store on a local port for the duration of a test."""
    server = TestServer(store_backend.make_app())
    await server.start_server()
    yield server
    await server.close()


@pytest.fixture
def store_url(store_server) -> str:
    return str(store_server.make_url("/")).rstrip("/")


@pytest.fixture
def temp_data_dir(tmp_path):
    """Directory for config files and logs."""
    return tmp_path
