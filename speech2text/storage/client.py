"""HTTP client for the transcript store API."""

import asyncio
import logging
from typing import Any, List, Tuple

import aiohttp
from pydantic import ValidationError

from ..errors import NetworkError, ServerError
from ..models.transcription import SavedTranscript

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5050"


class TranscriptStoreClient:
    """Creates and lists transcripts on the remote store.

    ``POST /api/transcriptions`` with ``{"text": ...}`` creates a record and
    ``GET /api/transcriptions`` returns all of them. Timeouts are left to
    aiohttp's defaults.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL):
        """Initialize store client.

        Args:
            base_url: Base URL of the store, without the /api path
        """
        self.base_url = base_url.rstrip("/")
        self.endpoint = f"{self.base_url}/api/transcriptions"
        logger.info(f"TranscriptStoreClient initialized with endpoint: {self.endpoint}")

    async def save(self, text: str) -> SavedTranscript:
        """Persist ``text`` and return the record the store created.

        Raises:
            ValueError: if ``text`` is blank
            NetworkError: if the store could not be reached
            ServerError: on a non-success or malformed response
        """
        if not text.strip():
            raise ValueError("Cannot save an empty transcription")

        status, payload = await self._request("POST", json={"text": text})
        try:
            record = SavedTranscript.model_validate(payload)
        except ValidationError as e:
            raise ServerError(status, f"Malformed transcription record: {e}") from e
        logger.info(f"Saved transcription {record.id} ({len(record.text)} chars)")
        return record

    async def list(self) -> List[SavedTranscript]:
        """Fetch every saved transcript in the order the store returns them."""
        status, payload = await self._request("GET")
        if not isinstance(payload, list):
            raise ServerError(status, "Expected a list of transcriptions")
        try:
            records = [SavedTranscript.model_validate(item) for item in payload]
        except ValidationError as e:
            raise ServerError(status, f"Malformed transcription record: {e}") from e
        logger.debug(f"Fetched {len(records)} transcriptions")
        return records

    async def _request(self, method: str, **kwargs) -> Tuple[int, Any]:
        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(method, self.endpoint, **kwargs) as response:
                    if not 200 <= response.status < 300:
                        error_text = await response.text()
                        logger.warning(f"{method} {self.endpoint} -> {response.status}: {error_text[:200]}")
                        raise ServerError(response.status)
                    try:
                        return response.status, await response.json(content_type=None)
                    except ValueError as e:
                        raise ServerError(response.status, f"Invalid JSON in response: {e}") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Failed to reach transcript store: {e}") from e
        except asyncio.TimeoutError as e:
            raise NetworkError("Request to transcript store timed out") from e
