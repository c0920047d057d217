"""Error kinds raised by the recognition adapter and the persistence client."""

from typing import Optional


class Speech2TextError(Exception):
    """Base class for all Speech2Text errors."""


class UnsupportedCapabilityError(Speech2TextError):
    """No speech recognition capability is available on this host."""


class AlreadyStartedError(Speech2TextError):
    """Recognition was started while a session was already running."""

    def __init__(self, message: str = "Recognition already started."):
        super().__init__(message)


class RecognitionError(Speech2TextError):
    """The recognizer reported an error code."""

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        super().__init__(message or code)


class PersistenceError(Speech2TextError):
    """Saving or fetching transcripts failed."""


class NetworkError(PersistenceError):
    """The transcript store could not be reached."""


class ServerError(PersistenceError):
    """The transcript store answered with a non-success response."""

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        super().__init__(message or f"HTTP error! status: {status}")
