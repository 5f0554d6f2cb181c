"""Typer CLI definition for agispeak.

The dialplan runs it as AGI(agispeak,"text"[,voice[,keys[,speed]]]), so the
positional arguments arrive exactly as the dialplan passed them.
"""

import logging
import sys
import tomllib
from pathlib import Path

import typer

from .agi.client import AGIClient
from .config import generate_config, load_config, resolve_config_path
from .core import build_request, speak_utterance
from .errors import AGIError, AgispeakError, InvocationInterrupted
from .tempfiles import signal_guard
from .voices import list_voices as list_voice_models

app = typer.Typer(help="Speak text to an Asterisk channel using Piper voices")

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 2


def configure_logging(debug: bool) -> None:
    """Send logs to stderr; stdout carries the AGI control channel."""
    logging.basicConfig(
        stream=sys.stderr,
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def report_failure(client: AGIClient, message: str) -> None:
    """Log a fatal error and mirror it to the host console."""
    logger.error(message)
    try:
        client.verbose(f"agispeak: {message}", 1)
    except AGIError as e:
        logger.debug(f"Could not report failure to host: {e}")


@app.command()
def speak(
    text: str | None = typer.Argument(None, help="Text to speak"),
    voice: str | None = typer.Argument(
        None, help="Voice model or language prefix (from config if omitted)"
    ),
    keys: str | None = typer.Argument(
        None, help='Keys that interrupt playback ("any" for all)'
    ),
    speed: str | None = typer.Argument(None, help="Tempo multiplier (default 1)"),
    config_path: Path | None = typer.Option(
        None, "-c", "--config", help="Config file (default /etc/agispeak/config.toml)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Log protocol and subprocesses"),
    list_voices: bool = typer.Option(
        False, "--list-voices", help="List installed voice models and exit"
    ),
    init_config: bool = typer.Option(
        False, "--init-config", help="Write the default config file and exit"
    ),
) -> None:
    """Speak text to the calling channel."""
    if init_config:
        path = resolve_config_path(config_path)
        try:
            generate_config(path)
        except OSError as e:
            typer.echo(f"Error: Cannot write {path}: {e}", err=True)
            raise typer.Exit(EXIT_FAILURE) from None
        typer.echo(f"Wrote {path}")
        raise typer.Exit(0)

    try:
        config = load_config(config_path)
    except (ValueError, tomllib.TOMLDecodeError, OSError) as e:
        typer.echo(f"Error: Invalid configuration: {e}", err=True)
        raise typer.Exit(EXIT_FAILURE) from None

    configure_logging(debug or config.debug)

    if list_voices:
        for name in list_voice_models(config.tts.voices_dir):
            typer.echo(name)
        raise typer.Exit(0)

    # Bad input aborts before any protocol traffic
    try:
        request = build_request(text, voice, keys, speed, config)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_FAILURE) from None

    client = AGIClient()
    try:
        with signal_guard():
            client.read_environment()
            result = speak_utterance(request, config, client)
    except InvocationInterrupted as e:
        logger.warning(f"Stopped: {e}")
        raise typer.Exit(EXIT_INTERRUPTED) from None
    except AGIError as e:
        logger.error(f"Control channel error: {e}")
        raise typer.Exit(EXIT_FAILURE) from None
    except AgispeakError as e:
        report_failure(client, str(e))
        raise typer.Exit(EXIT_FAILURE) from None

    logger.debug(
        f"Played {result.played} (cache {'hit' if result.cache_hit else 'miss'}"
        f"{f', key {result.key}' if result.key else ''})"
    )
