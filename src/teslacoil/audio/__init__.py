"""Audio cue synthesis."""

from teslacoil.audio.synth import CueSynth

__all__ = ["CueSynth"]
