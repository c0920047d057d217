"""Keyboard input for the terminal UI, read on a background thread."""

import sys
import threading
import time
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)

# Receives one lower-cased key; returning False ends the reader
KeyCallback = Callable[[str], bool]


class InputReader(ABC):
    """Background thread turning stdin into single-key callbacks."""

    thread_name = "InputReaderThread"

    def __init__(self, callback: KeyCallback, stream=None):
        self.callback = callback
        self.stream = stream or sys.stdin
        self.running = False
        self.thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self.running:
            return
        self.running = True
        self.thread = threading.Thread(target=self._run, name=self.thread_name, daemon=True)
        self.thread.start()
        logger.info(f"{type(self).__name__} started")

    def stop(self) -> None:
        self.running = False
        logger.info(f"{type(self).__name__} stopped")

    def _run(self) -> None:
        try:
            while self.running:
                key = self.read_key()
                if key is None:
                    continue
                logger.debug(f"Key pressed: {key!r}")
                if not self.callback(key):
                    break
        finally:
            self.running = False

    @abstractmethod
    def read_key(self) -> Optional[str]:
        """Block briefly for one key; None when nothing was typed."""
        pass


class KeyboardInputHandler(InputReader):
    """Reads single keypresses from a TTY without waiting for Enter."""

    thread_name = "KeyboardInputThread"

    def stop(self) -> None:
        super().stop()
        # read_key polls, so the thread notices within one poll interval
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)

    def read_key(self) -> Optional[str]:
        if sys.platform == "win32":
            import msvcrt
            if not msvcrt.kbhit():
                time.sleep(0.05)
                return None
            return msvcrt.getch().decode('utf-8', errors='ignore').lower() or None

        import select
        import termios
        import tty

        if not select.select([self.stream], [], [], 0.1)[0]:
            return None
        saved = termios.tcgetattr(self.stream)
        try:
            tty.setraw(self.stream.fileno())
            return self.stream.read(1).lower() or None
        finally:
            termios.tcsetattr(self.stream, termios.TCSADRAIN, saved)


class SimpleInputHandler(InputReader):
    """Line based fallback for when stdin is not a terminal.

    Only the first character of each line counts. End of input quits.
    The thread blocks in readline, so ``stop`` does not wait for it.
    """

    thread_name = "SimpleInputThread"

    def read_key(self) -> Optional[str]:
        line = self.stream.readline()
        if not line:
            return "q"
        return line.strip().lower()[:1] or None


def create_input_handler(callback: KeyCallback) -> InputReader:
    """Pick the reader that suits the current stdin."""
    if sys.stdin.isatty():
        return KeyboardInputHandler(callback)
    logger.info("stdin is not a TTY, using line based input")
    return SimpleInputHandler(callback)
