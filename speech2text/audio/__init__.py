"""Audio capture for Speech2Text recognizers."""

from .capture import AudioCapture

__all__ = ["AudioCapture"]
