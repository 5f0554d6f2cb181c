"""Text clean-up before synthesis."""

import re

# Control characters plus characters the engine would read aloud or choke on
_RESERVED = re.compile(r"[\\|*~<>^()\[\]{}\x00-\x1f\x7f-\x9f]")
_WHITESPACE = re.compile(r"\s+")
_TERMINATED = re.compile(r"[.,?!:;]$")


def normalize_text(text: str | None) -> str:
    """Normalize utterance text for synthesis and fingerprinting.

    Reserved and control characters become spaces, whitespace runs collapse,
    the ends are trimmed and a final "." is added unless the text already
    ends in sentence punctuation.

    Raises:
        ValueError: If nothing speakable remains
    """
    if text is None:
        raise ValueError("No text provided")

    text = _RESERVED.sub(" ", text)
    text = _WHITESPACE.sub(" ", text).strip()
    if not text:
        raise ValueError("No text to speak")

    if not _TERMINATED.search(text):
        text += "."
    return text
