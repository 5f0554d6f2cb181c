"""Core functionality for agispeak - orchestrates AGI, cache and synthesis."""

import logging
from dataclasses import dataclass
from pathlib import Path

from .agi.client import STATUS_RINGING, AGIClient
from .agi.models import INTERRUPT_KEYS, AudioFormat, audio_format_for, pressed_key
from .cache.manager import SynthesisCache, fingerprint
from .config import AgispeakConfig
from .errors import AGIProtocolError
from .tempfiles import TempFiles
from .tts.pipeline import SynthesisPipeline
from .tts.runner import CommandRunner
from .tts.text import normalize_text
from .voices import resolve_voice

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UtteranceRequest:
    """One utterance to speak, with normalized text.

    Attributes:
        text: Normalized text
        voice: Voice identifier passed to the resolver
        keys: Keys that may interrupt playback ("" for none)
        speed: Tempo multiplier
    """

    text: str
    voice: str
    keys: str = ""
    speed: float = 1.0


@dataclass(frozen=True)
class UtteranceResult:
    """Outcome of speak_utterance().

    Attributes:
        played: File handed to the host, without extension
        cache_hit: Whether synthesis was skipped
        key: Key the caller pressed to interrupt, if any
    """

    played: str
    cache_hit: bool
    key: str | None = None


def parse_interrupt_keys(value: str | None) -> str:
    """Expand an interrupt key specification.

    "any" allows every digit plus * and #; empty allows none. Otherwise the
    valid keys in value are kept in order, without duplicates.
    """
    if not value:
        return ""
    if value.strip().lower() == "any":
        return INTERRUPT_KEYS
    keys = ""
    for char in value:
        if char in INTERRUPT_KEYS and char not in keys:
            keys += char
    return keys


def parse_speed(value: str | float | None) -> float:
    """Parse the tempo multiplier, defaulting to 1.

    Raises:
        ValueError: If value is not a positive number
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return 1.0
    try:
        speed = float(value)
    except ValueError:
        raise ValueError(f"Invalid speed: {value!r}") from None
    if not speed > 0 or speed == float("inf"):
        raise ValueError(f"Speed must be a positive number, got {value!r}")
    return speed


def build_request(
    text: str | None,
    voice: str | None,
    keys: str | None,
    speed: str | float | None,
    config: AgispeakConfig,
) -> UtteranceRequest:
    """Normalize invocation arguments into an UtteranceRequest.

    Raises:
        ValueError: If the text is empty after normalization or the speed
            is invalid
    """
    return UtteranceRequest(
        text=normalize_text(text),
        voice=voice.strip() if voice and voice.strip() else config.tts.default_voice,
        keys=parse_interrupt_keys(keys),
        speed=parse_speed(speed),
    )


def answer_if_needed(client: AGIClient) -> None:
    """Answer the channel if it is still ringing.

    A status query that cannot be parsed is logged and treated as "already
    answered". A failed ANSWER propagates.
    """
    try:
        status = client.channel_status()
    except AGIProtocolError as e:
        logger.warning(f"Channel status unavailable, not answering: {e}")
        return

    if status == STATUS_RINGING:
        logger.debug("Channel is ringing, answering")
        client.answer()


def detect_format(client: AGIClient) -> AudioFormat:
    """Read the channel's native audio format, falling back to 8 kHz sln."""
    try:
        native = client.get_variable("audionativeformat")
    except AGIProtocolError as e:
        logger.warning(f"Native format unavailable, using 8 kHz: {e}")
        native = None

    fmt = audio_format_for(native)
    logger.debug(f"Native format {native!r} -> {fmt.suffix} @ {fmt.sample_rate} Hz")
    return fmt


def _play(client: AGIClient, path: Path, keys: str) -> str | None:
    return pressed_key(client.playback(str(path.with_suffix("")), keys))


def speak_utterance(
    request: UtteranceRequest,
    config: AgispeakConfig,
    client: AGIClient,
    runner: CommandRunner | None = None,
) -> UtteranceResult:
    """Speak one utterance on the channel behind client.

    Serves the utterance from the cache when possible. Otherwise it is
    synthesized, transcoded, played and then cached. Temporary files are
    removed on every exit path.

    Args:
        request: Normalized utterance
        config: Loaded configuration
        client: Connected AGI client
        runner: Subprocess runner (defaults to real subprocesses)

    Returns:
        What was played and how

    Raises:
        AGIError: If answering or playback fails
        VoiceNotFoundError: If the voice cannot be resolved
        PipelineError: If synthesis or transcoding fails
    """
    cache = SynthesisCache(config.cache)
    cache.ensure()

    answer_if_needed(client)
    fmt = detect_format(client)
    voice_path = resolve_voice(request.voice, config.tts.voices_dir)
    logger.debug(f"Voice '{request.voice}' resolved to {voice_path}")

    key = fingerprint(request.text, request.voice, request.speed)
    cached = cache.lookup(key, fmt)
    if cached is not None:
        pressed = _play(client, cached, request.keys)
        return UtteranceResult(str(cached.with_suffix("")), True, pressed)

    with TempFiles(config.tmp_dir) as temps:
        pipeline = SynthesisPipeline(config, temps, runner)
        pipeline.check_programs()
        raw = pipeline.synthesize(request.text, voice_path)
        final = pipeline.transcode(raw, fmt, request.speed)
        pressed = _play(client, final, request.keys)
        cache.store(key, fmt, final)

    return UtteranceResult(str(final.with_suffix("")), False, pressed)
