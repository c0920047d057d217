"""Terminal screen for live transcription with rich."""

import asyncio
import logging
from typing import Optional, Set

from rich.console import Console, Group, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.align import Align

from ..models.session import SessionStatus
from ..services.session_controller import SessionController
from .keyboard_input import create_input_handler

logger = logging.getLogger(__name__)

PLACEHOLDER = "Speak into your microphone..."

STATUS_STYLES = {
    SessionStatus.IDLE: ("IDLE", "bold yellow"),
    SessionStatus.LISTENING: ("LISTENING", "bold red"),
    SessionStatus.STOPPED: ("STOPPED", "bold yellow"),
    SessionStatus.ERROR: ("ERROR", "bold magenta"),
}


class TranscriptionScreen:
    """Renders the controller state and maps keys to user actions.

    Keys: 1 start, 2 stop, 3 save, r refresh, q quit. Keys arrive on the
    input thread and are handed to the event loop, so the controller is only
    ever touched from the loop.
    """

    def __init__(self, controller: SessionController, console: Optional[Console] = None):
        self.controller = controller
        self.console = console or Console()
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.quit_event: Optional[asyncio.Event] = None
        self._tasks: Set[asyncio.Task] = set()

    # Rendering

    def render(self) -> RenderableType:
        return Group(
            self.render_header(),
            self.render_controls(),
            self.render_message(),
            self.render_transcript(),
            self.render_saved(),
        )

    def render_header(self) -> RenderableType:
        label, style = STATUS_STYLES[self.controller.status]
        header_text = Text.assemble(
            ("Speech2Text - Live Transcription", "bold blue"),
            "  |  ",
            (label, style),
        )
        return Panel(Align.center(header_text), style="bright_blue")

    def render_controls(self) -> RenderableType:
        c = self.controller
        start_label = "[1] Listening..." if c.status is SessionStatus.LISTENING else "[1] Start Listening"
        saving_label = "[3] Saving..." if c.is_saving else "[3] Save Transcription"

        def control(label: str, enabled: bool, style: str) -> Text:
            return Text(f" {label} ", style=style if enabled else "dim strike")

        return Align.center(Text.assemble(
            control(start_label, c.can_start, "bold green"), "  ",
            control("[2] Stop Listening", c.can_stop, "bold red"), "  ",
            control(saving_label, c.can_save, "bold cyan"), "  ",
            ("[r] Refresh  [q] Quit", "bright_black"),
        ))

    def render_message(self) -> RenderableType:
        return Align.center(Text(self.controller.message, style="bold red"))

    def render_transcript(self) -> RenderableType:
        transcript = self.controller.transcript
        body = Text(transcript, style="white") if transcript else Text(PLACEHOLDER, style="dim italic")
        return Panel(body, title="Current Transcription", border_style="blue")

    def render_saved(self) -> RenderableType:
        saved = self.controller.saved
        if not saved:
            return Panel(Align.center(Text("No saved transcriptions yet.", style="bright_black")),
                         title="Saved Transcriptions", border_style="green")

        table = Table(show_header=True, header_style="bold magenta", expand=True)
        table.add_column("Text", style="white", ratio=4)
        table.add_column("Saved", style="cyan", no_wrap=True)
        for item in saved:
            table.add_row(item.text, item.display_timestamp())
        return Panel(table, title="Saved Transcriptions", border_style="green")

    # Input

    def on_key(self, key: str) -> bool:
        """Called on the input thread. Returns False to stop reading keys."""
        self.loop.call_soon_threadsafe(self.handle_key, key)
        return key != 'q'

    def handle_key(self, key: str) -> None:
        logger.debug(f"Handling key input: {key!r}")
        if key == 'q':
            self.quit_event.set()
        elif key == '1':
            self.controller.start()
        elif key == '2':
            self.controller.stop()
        elif key == '3':
            self._spawn(self.controller.save())
        elif key == 'r':
            self._spawn(self.controller.refresh())
        else:
            logger.debug(f"Unhandled key: {key!r}")

    def _spawn(self, coro) -> None:
        task = self.loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # Main loop

    async def run(self) -> None:
        """Run until the user quits; the controller must already be open."""
        self.loop = asyncio.get_running_loop()
        self.quit_event = asyncio.Event()
        input_handler = create_input_handler(self.on_key)
        input_handler.start()
        try:
            with Live(console=self.console, get_renderable=self.render,
                      refresh_per_second=10, screen=True):
                await self.quit_event.wait()
        finally:
            input_handler.stop()
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            logger.info("TranscriptionScreen finished")
