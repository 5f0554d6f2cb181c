"""TTS (Text-to-Speech) package for agispeak.

This package runs the Piper engine and the SoX converter.
"""

from .pipeline import SynthesisPipeline
from .runner import CommandRunner, SubprocessRunner
from .text import normalize_text

__all__ = [
    "CommandRunner",
    "SubprocessRunner",
    "SynthesisPipeline",
    "normalize_text",
]
