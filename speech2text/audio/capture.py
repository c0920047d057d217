"""Microphone capture feeding a recognizer from a background thread."""

import time
import logging
from contextlib import contextmanager
from threading import Thread, Event, current_thread
from typing import Callable, Iterator, Optional

import pyaudio

from ..models.events import AudioEvent

logger = logging.getLogger(__name__)

AudioCallback = Callable[[AudioEvent], None]


def has_input_device() -> bool:
    """Return True if PyAudio can see a default input device."""
    pa = pyaudio.PyAudio()
    try:
        info = pa.get_default_input_device_info()
        logger.debug(f"Default input device: {info.get('name') if isinstance(info, dict) else info}")
        return True
    except (IOError, OSError) as e:
        logger.info(f"No default input device: {e}")
        return False
    finally:
        pa.terminate()


class AudioCapture:
    """Reads the microphone until stopped and hands each chunk to ``callback``.

    Every capture ends with one ``AudioEvent`` flagged ``final``, carrying no
    audio. It is sent also when the device could not be opened, so a
    recognizer waiting on the stream always learns that it is over. A device
    error is kept in ``last_error`` for the recognizer to report.
    """

    def __init__(self,
                 callback: AudioCallback,
                 sample_rate: int = 16000,
                 chunk_size: int = 1024,
                 channels: int = 1,
                 format: int = pyaudio.paInt16):
        """
        Args:
            callback: Receives every AudioEvent, on the capture thread
            sample_rate: Samples per second; 16kHz is what speech models expect
            chunk_size: Frames read per chunk
            channels: 1 for mono
            format: PyAudio sample format
        """
        self.callback = callback
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.format = format

        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False
        self.last_error: Optional[Exception] = None
        self.total_chunks = 0

    def start_recording(self) -> None:
        if self.is_recording:
            logger.warning("Audio capture already running")
            return

        self.stop_event.clear()
        self.total_chunks = 0
        self.last_error = None
        self.is_recording = True
        self.recording_thread = Thread(target=self._capture, name="AudioCaptureThread", daemon=True)
        self.recording_thread.start()
        logger.info(f"Audio capture started ({self.sample_rate}Hz, {self.channels}ch)")

    def stop_recording(self, wait: bool = True) -> None:
        """Ask the capture thread to finish.

        With ``wait`` the call blocks until the final event was delivered;
        without it the thread winds down on its own.
        """
        thread = self.recording_thread
        if thread is None or not thread.is_alive():
            return

        self.stop_event.set()
        if not wait or thread is current_thread():
            return
        thread.join(timeout=2.0)
        if thread.is_alive():
            logger.warning("Audio capture thread did not stop in time")
            return
        logger.info(f"Audio capture stopped after {self.total_chunks} chunks")

    @contextmanager
    def _input_stream(self) -> Iterator["pyaudio.Stream"]:
        pa = pyaudio.PyAudio()
        stream = None
        try:
            stream = pa.open(
                format=self.format,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
            )
            yield stream
        finally:
            if stream is not None:
                stream.stop_stream()
                stream.close()
            pa.terminate()

    def _capture(self) -> None:
        try:
            with self._input_stream() as stream:
                while not self.stop_event.is_set():
                    chunk = stream.read(self.chunk_size, exception_on_overflow=False)
                    self.total_chunks += 1
                    self._deliver(chunk)
        except (IOError, OSError) as e:
            logger.error(f"Microphone capture failed: {e}")
            self.last_error = e
        finally:
            self.is_recording = False
            self._deliver(b"", final=True)

    def _deliver(self, chunk: bytes, final: bool = False) -> None:
        self.callback(AudioEvent(
            audio_data=chunk,
            timestamp=time.time(),
            sequence_number=self.total_chunks,
            sample_rate=self.sample_rate,
            channels=self.channels,
            final=final,
        ))
