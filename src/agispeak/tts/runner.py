"""Subprocess launching for the synthesis pipeline."""

import logging
import subprocess
from typing import Protocol

from ..errors import PipelineError

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Anything that can run a program to completion."""

    def run(self, args: list[str], stdin: bytes | None = None) -> int:
        """Run args, feed stdin, and return the exit status."""
        ...

    def output(self, args: list[str]) -> str:
        """Run args and return their combined output, or "" on failure."""
        ...


class SubprocessRunner:
    """CommandRunner backed by subprocess.run."""

    def run(self, args: list[str], stdin: bytes | None = None) -> int:
        logger.debug(f"Running: {' '.join(args)}")
        try:
            result = subprocess.run(
                args,
                input=stdin,
                stdin=None if stdin is not None else subprocess.DEVNULL,
                # stdout belongs to the control channel
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError as e:
            raise PipelineError(f"Failed to launch {args[0]}: {e}", e) from e

        if result.returncode != 0 and result.stderr:
            logger.error(
                f"{args[0]} exited with {result.returncode}: "
                f"{result.stderr.decode(errors='replace').strip()}"
            )
        return result.returncode

    def output(self, args: list[str]) -> str:
        """Run args and return their stdout, or "" if they cannot run."""
        try:
            result = subprocess.run(
                args,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                check=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            logger.warning(f"Failed to run {' '.join(args)}: {e}")
            return ""
        return result.stdout + result.stderr
