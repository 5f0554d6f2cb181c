"""Voice model lookup for the Piper engine.

Models live in a flat directory and are named
<language>_<REGION>-<name>-<quality>.onnx, e.g. en_US-amy-medium.onnx.
"""

import logging
import os
import re
from pathlib import Path

from .errors import VoiceNotFoundError

logger = logging.getLogger(__name__)

MODEL_EXTENSION = ".onnx"

QUALITY_RANKS = {
    "high": 3,
    "medium": 2,
    "low": 1,
    "x_low": 0,
}


def normalize_identifier(identifier: str) -> str:
    """Bring a voice identifier to the on-disk naming convention.

    "en-US-amy" and "en_US-amy" both become "en_US-amy"; a trailing model
    extension is dropped.
    """
    identifier = identifier.strip()
    identifier = identifier.removesuffix(MODEL_EXTENSION)
    return re.sub(r"^([a-z]{2,3})-([A-Z]{2})(?=-|$)", r"\1_\2", identifier)


def quality_rank(path: Path) -> int:
    """Rank a model by the quality tag ending its stem (-1 if unknown)."""
    stem = path.name.removesuffix(MODEL_EXTENSION)
    return QUALITY_RANKS.get(stem.rsplit("-", 1)[-1], -1)


def resolve_voice(identifier: str, voices_dir: Path) -> Path:
    """Find the model file for a voice identifier.

    An exact filename match in voices_dir wins. Otherwise every
    "<identifier>-*.onnx" model is considered and the best quality one is
    picked, keeping directory order between equal qualities.

    Args:
        identifier: Model filename or "<language>-<name>" prefix
        voices_dir: Directory holding the models

    Returns:
        Path to the chosen model

    Raises:
        VoiceNotFoundError: If no model matches
    """
    if not identifier:
        raise VoiceNotFoundError("No voice identifier provided")

    # Identifiers name a file inside voices_dir, never a path out of it
    separators = [sep for sep in (os.sep, os.altsep, "/") if sep]
    if any(sep in identifier for sep in separators) or identifier in (".", ".."):
        raise VoiceNotFoundError(f"Invalid voice identifier '{identifier}'")

    exact = voices_dir / identifier
    if exact.is_file():
        logger.debug(f"Using exact voice model {exact}")
        return exact

    prefix = normalize_identifier(identifier)
    candidates = sorted(voices_dir.glob(f"{prefix}-*{MODEL_EXTENSION}"))
    bare = voices_dir / f"{prefix}{MODEL_EXTENSION}"
    if bare.is_file():
        candidates.append(bare)
    candidates = [path for path in candidates if path.is_file()]

    if not candidates:
        raise VoiceNotFoundError(
            f"No voice model matching '{identifier}' in {voices_dir}"
        )

    # sorted() is stable, so equal ranks keep their listing order
    candidates = sorted(candidates, key=quality_rank, reverse=True)
    logger.debug(
        f"Voice '{identifier}' candidates: {[path.name for path in candidates]}"
    )
    return candidates[0]


def list_voices(voices_dir: Path) -> list[str]:
    """Return the names of all models in voices_dir, without extension."""
    if not voices_dir.is_dir():
        return []
    return sorted(
        path.name.removesuffix(MODEL_EXTENSION)
        for path in voices_dir.glob(f"*{MODEL_EXTENSION}")
        if path.is_file()
    )
