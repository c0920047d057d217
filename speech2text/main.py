"""Main application entry point for Speech2Text."""

import sys
import asyncio
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .config import Speech2TextConfig
from .errors import PersistenceError
from .recognition.google_provider import GoogleStreamingProvider
from .services.session_controller import SessionController
from .storage.client import TranscriptStoreClient
from .ui.transcription_screen import TranscriptionScreen

logger = logging.getLogger(__name__)


def setup_logging(config: Speech2TextConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/speech2text.log')
    console_output = config.get('logging.console_output', True)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("Speech2Text starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


async def run_interactive(config: Speech2TextConfig, console: Console) -> None:
    loop = asyncio.get_running_loop()
    controller = SessionController(
        provider=GoogleStreamingProvider.from_config(config),
        store=TranscriptStoreClient(config.get_api_base_url()),
        language=config.get('recognition.language', 'en-US'),
        continuous=config.get('recognition.continuous', True),
        interim_results=config.get('recognition.interim_results', True),
        dispatch=loop.call_soon_threadsafe,
    )
    async with controller:
        await TranscriptionScreen(controller, console).run()


async def print_history(config: Speech2TextConfig, console: Console) -> None:
    store = TranscriptStoreClient(config.get_api_base_url())
    records = await store.list()
    if not records:
        console.print("No saved transcriptions yet.", style="bright_black")
        return
    table = Table(title="Saved Transcriptions", header_style="bold magenta")
    table.add_column("ID", style="bright_black", no_wrap=True)
    table.add_column("Text", style="white")
    table.add_column("Saved", style="cyan", no_wrap=True)
    for record in records:
        table.add_row(record.id, record.text, record.display_timestamp())
    console.print(table)


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Path to configuration YAML file (default: looks for speech2text.yaml)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
              default=None, help="Override the configured logging level")
@click.version_option(package_name="speech2text")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """Speech2Text - live speech transcription with saved history."""
    try:
        config = Speech2TextConfig(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e))
    setup_logging(config, log_level or config.get('logging.level', 'INFO'))
    ctx.obj = config


@cli.command()
@click.option("--language", help="Recognition language, e.g. en-US")
@click.option("--api-url", help="Base URL of the transcript store")
@click.pass_obj
def run(config: Speech2TextConfig, language: Optional[str], api_url: Optional[str]) -> None:
    """Open the interactive transcription screen."""
    if language:
        config.set('recognition.language', language)
    if api_url:
        config.set('api.base_url', api_url)
    console = Console()
    try:
        asyncio.run(run_interactive(config, console))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    console.print("Goodbye!", style="bold blue")


@cli.command()
@click.option("--api-url", help="Base URL of the transcript store")
@click.pass_obj
def history(config: Speech2TextConfig, api_url: Optional[str]) -> None:
    """Print saved transcriptions and exit."""
    if api_url:
        config.set('api.base_url', api_url)
    try:
        asyncio.run(print_history(config, Console()))
    except PersistenceError as e:
        logger.error(f"Error fetching transcriptions: {e}")
        raise click.ClickException(f"Error fetching transcriptions: {e}")


def main() -> None:
    """Main entry point for Speech2Text."""
    cli()


if __name__ == "__main__":
    main()
