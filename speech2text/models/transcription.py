"""Transcription-related data models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class TranscriptSegment:
    """One unit of recognized speech with its finality flag."""
    text: str
    is_final: bool = False
    confidence: Optional[float] = None  # Only some recognizers report it


class SavedTranscript(BaseModel):
    """A transcript record persisted by the remote store.

    The store names the identifier ``_id``; it is exposed here as ``id``.
    Records are immutable from the client's point of view.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="_id")
    text: str
    timestamp: datetime

    def display_timestamp(self) -> str:
        """Timestamp converted to local time in the locale's date/time format."""
        return self.timestamp.astimezone().strftime("%x %X")
