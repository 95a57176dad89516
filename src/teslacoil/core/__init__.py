"""Simulation core: sparks, arc generation and arc lifecycle."""

from teslacoil.core.sparks import SparkPool
from teslacoil.core.arcs import Arc, ArcGenerator, AudioCue
from teslacoil.core.lifecycle import ArcManager

__all__ = ["SparkPool", "Arc", "ArcGenerator", "AudioCue", "ArcManager"]
