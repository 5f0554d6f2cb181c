"""Per-invocation temporary file tracking and signal handling."""

import logging
import os
import signal
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType

from .errors import InvocationInterrupted, WorkspaceError

logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGHUP, signal.SIGTERM)


class TempFiles:
    """Registry of temporary files removed when the scope exits.

    Files are registered before anything that can fail writes them, and
    every one of them is removed however the scope ends.

    Example:
        with TempFiles(Path("/tmp")) as temps:
            base = temps.new_base()
            wav = temps.register(base.with_suffix(".wav"))
            ...
    """

    def __init__(self, directory: Path, prefix: str = "agispeak_") -> None:
        self.directory = directory
        self.prefix = prefix
        self.paths: list[Path] = []

    def __enter__(self) -> "TempFiles":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    def new_base(self) -> Path:
        """Reserve a unique extension-less base path in the directory.

        The placeholder file that reserves the name is registered too.

        Raises:
            WorkspaceError: If the directory cannot be created or written
        """
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(prefix=self.prefix, dir=self.directory)
        except OSError as e:
            raise WorkspaceError(
                f"Cannot create temporary files in {self.directory}: {e}", e
            ) from e
        os.close(fd)
        return self.register(Path(name))

    def register(self, path: Path) -> Path:
        self.paths.append(path)
        return path

    def cleanup(self) -> None:
        """Remove every registered file. Safe to call more than once.

        Handled signals are held back until the loop finishes, then delivered.
        """
        previous = signal.pthread_sigmask(signal.SIG_BLOCK, HANDLED_SIGNALS)
        try:
            while self.paths:
                path = self.paths.pop(0)
                try:
                    path.unlink(missing_ok=True)
                    logger.debug(f"Removed temporary file {path}")
                except OSError as e:
                    logger.warning(f"Failed to remove temporary file {path}: {e}")
        finally:
            signal.pthread_sigmask(signal.SIG_SETMASK, previous)


def _raise_interrupted(signum: int, frame: object) -> None:
    raise InvocationInterrupted(signum)


@contextmanager
def signal_guard() -> Generator[None]:
    """Turn SIGINT/SIGHUP/SIGTERM into InvocationInterrupted.

    The exception unwinds through any enclosing TempFiles scope, so a
    signal runs the same cleanup as a normal exit. Previous handlers are
    restored on exit.
    """
    previous = {}
    for signum in HANDLED_SIGNALS:
        previous[signum] = signal.signal(signum, _raise_interrupted)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
