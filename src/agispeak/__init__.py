"""agispeak - Piper text-to-speech playback for Asterisk dialplans."""

__version__ = "0.1.0"
__all__ = ["speak_utterance"]


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name == "speak_utterance":
        from .core import speak_utterance

        return speak_utterance
    raise AttributeError(f"module 'agispeak' has no attribute {name!r}")
