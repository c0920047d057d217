"""Services layer for Speech2Text application logic."""

from .session_controller import SessionController

__all__ = [
    "SessionController",
]
