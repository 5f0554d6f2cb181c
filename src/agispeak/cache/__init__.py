"""Synthesis cache for agispeak."""

from .manager import FINGERPRINT_LENGTH, SynthesisCache, fingerprint

__all__ = ["FINGERPRINT_LENGTH", "SynthesisCache", "fingerprint"]
