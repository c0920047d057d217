"""Merges incremental recognition results into one displayable transcript."""

import logging

from ..models.events import RecognitionResult

logger = logging.getLogger(__name__)


class TranscriptAssembler:
    """Keeps the transcript of the current recognition run.

    An event only carries the segments from its ``result_index`` onward;
    earlier positions were finalized by previous events. Final segments are
    appended to ``final_text`` in the order received and never revised.
    Interim segments of the latest event replace ``interim_text`` wholesale,
    since each interim result is a revision of the same tentative span.
    """

    def __init__(self):
        self.final_text = ""
        self.interim_text = ""

    @property
    def text(self) -> str:
        return self.final_text + self.interim_text

    def reset(self) -> None:
        """Forget everything; called when a new run starts or after a save."""
        self.final_text = ""
        self.interim_text = ""

    def apply(self, event: RecognitionResult) -> str:
        """Fold one result event into the transcript and return the new text."""
        interim_parts = []
        for segment in event.segments:
            if segment.is_final:
                self.final_text += segment.text
            else:
                interim_parts.append(segment.text)
        self.interim_text = "".join(interim_parts)
        logger.debug(f"Transcript at result {event.result_index}: "
                     f"{len(self.final_text)} final chars, interim {self.interim_text!r}")
        return self.text
