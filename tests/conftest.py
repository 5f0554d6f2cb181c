"""Pytest configuration and fixtures for agispeak tests."""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from agispeak.config import AgispeakConfig, CacheConfig, ConverterConfig, TTSConfig

ENV_VARS = (
    "AGISPEAK_CONFIG",
    "AGISPEAK_VOICE",
    "AGISPEAK_VOICES_DIR",
    "AGISPEAK_CACHE",
    "AGISPEAK_CACHE_DIR",
    "AGISPEAK_TMP_DIR",
    "AGISPEAK_DEBUG",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch) -> None:
    """Keep the developer's AGISPEAK_* variables out of every test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def programs_installed(monkeypatch) -> None:
    """Pretend piper and sox are on PATH."""
    monkeypatch.setattr(
        "agispeak.tts.pipeline.shutil.which", lambda name: f"/usr/bin/{name}"
    )


@pytest.fixture
def voices_dir(tmp_path: Path) -> Path:
    """Voice directory with three qualities of en_US-amy and one other voice."""
    path = tmp_path / "voices"
    path.mkdir()
    for name in (
        "en_US-amy-low.onnx",
        "en_US-amy-high.onnx",
        "en_US-amy-medium.onnx",
        "de_DE-thorsten-medium.onnx",
    ):
        (path / name).write_bytes(b"model")
        (path / f"{name}.json").write_text("{}")
    return path


@pytest.fixture
def make_config(tmp_path: Path, voices_dir: Path) -> Callable[..., AgispeakConfig]:
    """Factory for configs rooted in the test's tmp_path."""

    def _make(
        cache_enabled: bool = True,
        cache_dir: Path | None = None,
        max_path_length: int = 255,
        default_voice: str = "en_US-amy",
        tempo_min_version: tuple[int, ...] = (14, 3),
    ) -> AgispeakConfig:
        return AgispeakConfig(
            tts=TTSConfig(
                default_voice=default_voice,
                voices_dir=voices_dir,
                piper="piper",
                scratch_dir=tmp_path / "scratch",
            ),
            converter=ConverterConfig(sox="sox", tempo_min_version=tempo_min_version),
            cache=CacheConfig(
                enabled=cache_enabled,
                dir=cache_dir or tmp_path / "cache",
                max_path_length=max_path_length,
            ),
            tmp_dir=tmp_path / "tmp",
        )

    return _make
