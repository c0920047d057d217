"""Speech2Text - capture live speech, review it and keep finished transcripts."""

__version__ = "0.1.0"
