"""Procedural Tesla coil arc and spark simulator."""

from teslacoil.config import CoilConfig, CoilParams
from teslacoil.core.arcs import Arc, ArcGenerator, AudioCue
from teslacoil.core.lifecycle import ArcManager
from teslacoil.core.sparks import SparkPool
from teslacoil.simulation import CoilSimulation, FrameClock, FramePayload

__version__ = "0.1.0"
__all__ = [
    "CoilConfig",
    "CoilParams",
    "Arc",
    "ArcGenerator",
    "AudioCue",
    "ArcManager",
    "SparkPool",
    "CoilSimulation",
    "FrameClock",
    "FramePayload",
]
