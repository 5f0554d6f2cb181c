"""Data models for the AGI control channel."""

import re
from dataclasses import dataclass

# Digits a caller can press to interrupt playback
INTERRUPT_KEYS = "0123456789*#"


def pressed_key(result: int) -> str | None:
    """Return the interrupt key whose character code is result, if any."""
    if 32 <= result < 127 and chr(result) in INTERRUPT_KEYS:
        return chr(result)
    return None


@dataclass(frozen=True)
class AGIReply:
    """Parsed "200 result=<int> [<data>]" reply.

    Attributes:
        result: Numeric result reported by the host
        data: Remaining text after the result, if any
    """

    result: int
    data: str | None = None

    @property
    def value(self) -> str | None:
        """Text inside the first "(...)" group of data, e.g. a variable value."""
        if not self.data:
            return None
        match = re.match(r"^\((.*)\)", self.data)
        return match.group(1) if match else None


@dataclass(frozen=True)
class AudioFormat:
    """Signed-linear format the channel plays natively.

    Attributes:
        suffix: File extension the host associates with the format
        sample_rate: Sample rate in Hz
    """

    suffix: str
    sample_rate: int


SLN_8K = AudioFormat("sln", 8000)

_FORMATS = {
    "silk12": AudioFormat("sln12", 12000),
    "sln12": AudioFormat("sln12", 12000),
    "speex16": AudioFormat("sln16", 16000),
    "slin16": AudioFormat("sln16", 16000),
    "silk16": AudioFormat("sln16", 16000),
    "g722": AudioFormat("sln16", 16000),
    "siren7": AudioFormat("sln16", 16000),
    "g719": AudioFormat("sln16", 16000),
    "speex32": AudioFormat("sln32", 32000),
    "slin32": AudioFormat("sln32", 32000),
    "celt32": AudioFormat("sln32", 32000),
    "siren14": AudioFormat("sln32", 32000),
    "celt44": AudioFormat("sln44", 44100),
    "slin44": AudioFormat("sln44", 44100),
    "celt48": AudioFormat("sln48", 48000),
    "slin48": AudioFormat("sln48", 48000),
}

# Longest suffix above, used when budgeting cache path lengths
MAX_SUFFIX_LENGTH = max(len(fmt.suffix) for fmt in _FORMATS.values())


def audio_format_for(native: str | None) -> AudioFormat:
    """Map a host-reported native format tag to an AudioFormat.

    The host may report a composite tag such as "(slin16|ulaw)"; the first
    known tag wins. Unknown or missing tags fall back to 8 kHz sln.
    """
    if not native:
        return SLN_8K
    for tag in re.split(r"[|()\s,]+", native.lower()):
        if tag in _FORMATS:
            return _FORMATS[tag]
    return SLN_8K
