"""AGI control channel package for agispeak.

This package speaks the Asterisk Gateway Interface over stdin/stdout.
"""

from .client import AGIClient
from .models import AGIReply, AudioFormat, audio_format_for, pressed_key

__all__ = [
    "AGIClient",
    "AGIReply",
    "AudioFormat",
    "audio_format_for",
    "pressed_key",
]
