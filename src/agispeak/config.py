"""Configuration management for agispeak.

Loads configuration from /etc/agispeak/config.toml (or the file named by
--config / $AGISPEAK_CONFIG).
Priority chain: CLI flags > env vars > config file > built-in defaults.
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_PATH = Path("/etc/agispeak/config.toml")

DEFAULT_CONFIG = """\
# agispeak configuration

# Log every protocol round-trip and subprocess call to stderr
debug = false

[tts]
# Voice used when the dialplan does not pass one. Either a model filename
# in voices_dir or a "<language>-<name>" prefix such as "en_US-amy"
default_voice = "en_US-amy"

# Directory holding <language>-<name>-<quality>.onnx models
voices_dir = "/var/lib/piper/voices"

# Piper executable
piper = "piper"

# Scratch directory for Piper's data and downloads
scratch_dir = "/tmp/agispeak"

[converter]
# SoX executable
sox = "sox"

# SoX versions older than this use "stretch" instead of "tempo"
tempo_min_version = "14.3"

[cache]
enabled = true
dir = "/tmp"

# Longest cache file path the filesystem accepts
max_path_length = 255

[paths]
# Per-invocation temporary files
tmp_dir = "/tmp"
"""


@dataclass(frozen=True)
class TTSConfig:
    """Text-to-speech engine configuration."""

    default_voice: str
    voices_dir: Path
    piper: str
    scratch_dir: Path


@dataclass(frozen=True)
class ConverterConfig:
    """Audio converter configuration."""

    sox: str
    tempo_min_version: tuple[int, ...]


@dataclass(frozen=True)
class CacheConfig:
    """Synthesis cache configuration."""

    enabled: bool
    dir: Path
    max_path_length: int


@dataclass(frozen=True)
class AgispeakConfig:
    """Top-level agispeak configuration."""

    tts: TTSConfig
    converter: ConverterConfig
    cache: CacheConfig
    tmp_dir: Path
    debug: bool = False


def parse_version(value: str) -> tuple[int, ...]:
    """Parse a dotted version string such as "14.4.2" into a tuple.

    Raises:
        ValueError: If any component is not an integer.
    """
    parts = value.strip().lstrip("v").split(".")
    try:
        return tuple(int(part) for part in parts)
    except ValueError:
        raise ValueError(f"Invalid version: {value!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    if value.strip().lower() in ("1", "true", "yes", "on"):
        return True
    if value.strip().lower() in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"Invalid boolean for {name}: {value!r}")


def _require_type(section: dict, key: str, expected: type, label: str) -> None:
    if key in section and not isinstance(section[key], expected):
        raise ValueError(
            f"Config value {label} must be {expected.__name__}, "
            f"got {type(section[key]).__name__}"
        )


def generate_config(path: Path = CONFIG_PATH) -> Path:
    """Write the default config file to path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG)
    return path


def resolve_config_path(path: Path | None = None) -> Path:
    """Pick the config file location from the argument, env var or default."""
    if path is not None:
        return path
    env_path = os.getenv("AGISPEAK_CONFIG")
    if env_path:
        return Path(env_path)
    return CONFIG_PATH


def load_config(path: Path | None = None) -> AgispeakConfig:
    """Load configuration from the config file with env var overrides.

    Unlike an interactive tool, a missing config file is not an error: the
    script runs unattended under the telephony host, so built-in defaults
    apply.

    Args:
        path: Explicit config file location

    Returns:
        Loaded and validated AgispeakConfig.

    Raises:
        ValueError: If a config value has the wrong type or format.
        tomllib.TOMLDecodeError: If the config file is not valid TOML.
    """
    config_path = resolve_config_path(path)

    if config_path.exists():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    else:
        data = tomllib.loads(DEFAULT_CONFIG)

    defaults = tomllib.loads(DEFAULT_CONFIG)
    tts = {**defaults["tts"], **data.get("tts", {})}
    converter = {**defaults["converter"], **data.get("converter", {})}
    cache = {**defaults["cache"], **data.get("cache", {})}
    paths = {**defaults["paths"], **data.get("paths", {})}

    for key in ("default_voice", "voices_dir", "piper", "scratch_dir"):
        _require_type(tts, key, str, f"tts.{key}")
    for key in ("sox", "tempo_min_version"):
        _require_type(converter, key, str, f"converter.{key}")
    _require_type(cache, "enabled", bool, "cache.enabled")
    _require_type(cache, "dir", str, "cache.dir")
    _require_type(cache, "max_path_length", int, "cache.max_path_length")
    _require_type(paths, "tmp_dir", str, "paths.tmp_dir")
    _require_type(data, "debug", bool, "debug")

    if cache["max_path_length"] <= 0:
        raise ValueError(
            f"Config value cache.max_path_length must be positive, "
            f"got {cache['max_path_length']}"
        )

    return AgispeakConfig(
        tts=TTSConfig(
            default_voice=os.getenv("AGISPEAK_VOICE", tts["default_voice"]),
            voices_dir=Path(os.getenv("AGISPEAK_VOICES_DIR", tts["voices_dir"])),
            piper=tts["piper"],
            scratch_dir=Path(tts["scratch_dir"]),
        ),
        converter=ConverterConfig(
            sox=converter["sox"],
            tempo_min_version=parse_version(converter["tempo_min_version"]),
        ),
        cache=CacheConfig(
            enabled=_env_bool("AGISPEAK_CACHE", cache["enabled"]),
            dir=Path(os.getenv("AGISPEAK_CACHE_DIR", cache["dir"])),
            max_path_length=cache["max_path_length"],
        ),
        tmp_dir=Path(os.getenv("AGISPEAK_TMP_DIR", paths["tmp_dir"])),
        debug=_env_bool("AGISPEAK_DEBUG", data.get("debug", False)),
    )
