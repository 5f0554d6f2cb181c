"""Synthesis pipeline: Piper for speech, SoX for the channel format.

Both programs run as blocking subprocesses through a CommandRunner, so
tests can swap in a double that records invocations.
"""

import logging
import re
import shutil
from pathlib import Path

from ..agi.models import AudioFormat
from ..config import AgispeakConfig
from ..errors import ProgramNotFoundError, SynthesisError, TranscodeError
from ..tempfiles import TempFiles
from .runner import CommandRunner, SubprocessRunner

logger = logging.getLogger(__name__)

_SOX_VERSION = re.compile(r"v(\d+(?:\.\d+)*)")


class SynthesisPipeline:
    """Turns normalized text into a file the host can play.

    Example:
        with TempFiles(config.tmp_dir) as temps:
            pipeline = SynthesisPipeline(config, temps)
            pipeline.check_programs()
            raw = pipeline.synthesize("Hello.", voice_path)
            final = pipeline.transcode(raw, AudioFormat("sln16", 16000), 1.0)
    """

    def __init__(
        self,
        config: AgispeakConfig,
        temps: TempFiles,
        runner: CommandRunner | None = None,
    ) -> None:
        self.config = config
        self.temps = temps
        self.runner = runner or SubprocessRunner()
        self._base: Path | None = None
        self._sox_version: tuple[int, ...] | None = None

    def check_programs(self) -> None:
        """Verify Piper and SoX are installed.

        Raises:
            ProgramNotFoundError: If either executable cannot be found
        """
        for program in (self.config.tts.piper, self.config.converter.sox):
            if shutil.which(program) is None:
                raise ProgramNotFoundError(f"Required program not found: {program}")

    def _base_path(self) -> Path:
        if self._base is None:
            self._base = self.temps.new_base()
        return self._base

    def synthesize(self, text: str, voice_path: Path) -> Path:
        """Run Piper on text and return the raw WAV it produced.

        Raises:
            SynthesisError: If Piper fails or writes no audio
        """
        output = self.temps.register(self._base_path().with_suffix(".wav"))
        scratch = self.config.tts.scratch_dir
        try:
            scratch.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SynthesisError(
                f"Cannot create scratch directory {scratch}: {e}", None, e
            ) from e

        args = [
            self.config.tts.piper,
            "--model",
            str(voice_path),
            "--output_file",
            str(output),
            "--data-dir",
            str(scratch),
            "--download-dir",
            str(scratch),
        ]
        returncode = self.runner.run(args, stdin=f"{text}\n".encode())
        if returncode != 0:
            raise SynthesisError(
                f"Speech synthesis failed with exit status {returncode}", returncode
            )

        if not output.is_file() or output.stat().st_size == 0:
            raise SynthesisError(f"Speech synthesis produced no audio in {output}")

        logger.debug(f"Synthesized {len(text)} characters into {output}")
        return output

    def converter_version(self) -> tuple[int, ...]:
        """Return the installed SoX version, or (0,) if it cannot be read."""
        if self._sox_version is None:
            text = self.runner.output([self.config.converter.sox, "--version"])
            match = _SOX_VERSION.search(text)
            if match:
                self._sox_version = tuple(int(p) for p in match.group(1).split("."))
            else:
                logger.warning(f"Could not parse SoX version from {text!r}")
                self._sox_version = (0,)
        return self._sox_version

    def tempo_effect(self, speed: float) -> list[str]:
        """SoX effect arguments that change tempo by speed, or [] for 1."""
        if speed == 1:
            return []
        if self.converter_version() >= self.config.converter.tempo_min_version:
            return ["tempo", "-s", f"{speed:g}"]
        return ["stretch", f"{1 / speed:g}"]

    def transcode(self, raw: Path, fmt: AudioFormat, speed: float = 1.0) -> Path:
        """Convert raw audio to headerless 16-bit mono PCM in fmt.

        Raises:
            TranscodeError: If SoX exits non-zero
        """
        output = self.temps.register(self._base_path().with_suffix(f".{fmt.suffix}"))
        args = [
            self.config.converter.sox,
            str(raw),
            "-q",
            "-r",
            str(fmt.sample_rate),
            "-t",
            "raw",
            "-b",
            "16",
            "-e",
            "signed-integer",
            "-c",
            "1",
            str(output),
            *self.tempo_effect(speed),
        ]
        returncode = self.runner.run(args)
        if returncode != 0:
            raise TranscodeError(
                f"Audio conversion failed with exit status {returncode}", returncode
            )

        logger.debug(f"Transcoded {raw} to {output} ({fmt.sample_rate} Hz)")
        return output
