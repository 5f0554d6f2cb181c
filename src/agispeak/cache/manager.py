"""Fingerprint cache of transcoded utterances.

Entries are plain files named <fingerprint>.<format suffix> in a shared
directory. Nothing here evicts entries; housekeeping is left to the host
(e.g. tmpreaper on /tmp).
"""

import hashlib
import logging
import os
import shutil
import tempfile
from pathlib import Path

from ..agi.models import MAX_SUFFIX_LENGTH, AudioFormat
from ..config import CacheConfig

logger = logging.getLogger(__name__)

# MD5 hex digest
FINGERPRINT_LENGTH = 32


def fingerprint(text: str, voice: str, speed: float) -> str:
    """Generate the cache key for an utterance.

    Args:
        text: Normalized utterance text
        voice: Voice identifier as requested
        speed: Tempo multiplier

    Returns:
        32-character hex digest

    Raises:
        ValueError: If any input parameter is None
    """
    if text is None or voice is None or speed is None:
        raise ValueError("All parameters (text, voice, speed) must be non-None")

    input_string = f"{text} {voice} {float(speed)!r}"
    return hashlib.md5(input_string.encode("utf-8")).hexdigest()


class SynthesisCache:
    """Filesystem cache of audio already in the channel's native format.

    The cache starts disabled; ensure() enables it when the directory is
    usable. Every failure degrades to a cache miss instead of aborting the
    call.

    Example:
        cache = SynthesisCache(config.cache)
        cache.ensure()
        key = fingerprint(text, voice, speed)
        cached = cache.lookup(key, fmt)
        if cached is None:
            ...synthesize and play...
            cache.store(key, fmt, transcoded)
    """

    def __init__(self, config: CacheConfig) -> None:
        self.config = config
        self.cache_dir = config.dir
        self.enabled = False

    def max_entry_path_length(self) -> int:
        """Longest path any entry in this cache can have."""
        # "<dir>/<fingerprint>.<suffix>"
        return (
            len(str(self.cache_dir.absolute()))
            + 1
            + FINGERPRINT_LENGTH
            + 1
            + MAX_SUFFIX_LENGTH
        )

    def ensure(self) -> bool:
        """Enable the cache if its directory is usable.

        Returns:
            Whether caching is enabled for this invocation
        """
        self.enabled = False

        if not self.config.enabled:
            logger.debug("Cache disabled by configuration")
            return False

        longest = self.max_entry_path_length()
        if longest >= self.config.max_path_length:
            logger.warning(
                f"Cache disabled: entry paths in {self.cache_dir} would reach "
                f"{longest} characters (limit {self.config.max_path_length})"
            )
            return False

        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cache disabled: cannot create {self.cache_dir}: {e}")
            return False

        if not os.access(self.cache_dir, os.W_OK | os.X_OK):
            logger.warning(f"Cache disabled: {self.cache_dir} is not writable")
            return False

        self.enabled = True
        logger.debug(f"Cache enabled at {self.cache_dir}")
        return True

    def entry_path(self, key: str, fmt: AudioFormat) -> Path:
        return self.cache_dir / f"{key}.{fmt.suffix}"

    def lookup(self, key: str, fmt: AudioFormat) -> Path | None:
        """Return the cached entry for key in fmt, or None on a miss."""
        if not self.enabled:
            return None

        path = self.entry_path(key, fmt)
        if path.is_file() and os.access(path, os.R_OK):
            logger.info(f"Cache hit: {path}")
            return path

        logger.debug(f"Cache miss: {path}")
        return None

    def store(self, key: str, fmt: AudioFormat, source: Path) -> Path | None:
        """Copy a finished transcoded file into the cache.

        The copy is written to a hidden temporary file in the cache directory
        and renamed onto the entry name, so concurrent readers only ever see
        complete files. If two invocations race on the same key, the last
        rename wins. An entry that already exists is left untouched.

        Args:
            key: Fingerprint of the utterance
            fmt: Format of source
            source: Transcoded audio file

        Returns:
            Path of the entry, or None if caching is disabled or failed
        """
        if not self.enabled:
            return None

        path = self.entry_path(key, fmt)
        if path.exists():
            logger.debug(f"Cache entry already present: {path}")
            return path

        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{key}.", suffix=".part", dir=self.cache_dir
            )
            with os.fdopen(fd, "wb") as dst, open(source, "rb") as src:
                shutil.copyfileobj(src, dst)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, path)
            tmp_name = None
            logger.info(f"Cached {source} as {path}")
            return path
        except OSError as e:
            logger.warning(f"Failed to cache {source}: {e}")
            return None
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
