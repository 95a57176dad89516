"""
Active arc bookkeeping: aging, fading, expiry and throttled creation.
"""

import math
from typing import List

import numpy as np

from teslacoil.config import CoilParams
from teslacoil.core.arcs import INITIAL_OPACITY, Arc, ArcGenerator

CREATION_RATE = 50.0


class ArcManager:
    """Owns the visible arcs from creation until they expire."""

    def __init__(
        self,
        generator: ArcGenerator,
        lifetime: float = 0.1,
        rng: np.random.Generator | None = None,
    ):
        self.generator = generator
        self.lifetime = lifetime
        self.rng = rng if rng is not None else np.random.default_rng()
        self.arcs: List[Arc] = []

    def __len__(self) -> int:
        return len(self.arcs)

    def opacity_at(self, age: float) -> float:
        return INITIAL_OPACITY * (1.0 - age / self.lifetime)

    def age_and_expire(self, now: float, color) -> List[Arc]:
        """
        Fade live arcs, release expired ones.

        Arcs follow the current color setting until they expire.

        Returns:
            The arcs released this call.
        """
        color = tuple(color)
        expired = []
        for arc in self.arcs:
            age = arc.age(now)
            if age > self.lifetime:
                expired.append(arc)
                continue
            if arc.color != color:
                arc.color = color
            arc.opacity = self.opacity_at(age)

        if expired:
            for arc in expired:
                arc.release()
            self.arcs = [arc for arc in self.arcs if not arc.released]
        return expired

    def creation_chance(self, intensity: float, dt: float) -> float:
        return intensity * dt * CREATION_RATE

    def maybe_create(self, now: float, dt: float, params: CoilParams, emitter) -> Arc | None:
        """Create at most one arc if below target and the rate gate passes."""
        deficit = math.floor(params.num_arcs) - len(self.arcs)
        if deficit <= 0:
            return None
        if self.rng.random() >= self.creation_chance(params.intensity, dt):
            return None

        arc = self.generator.generate(emitter, params.intensity, params.arc_color, now)
        self.arcs.append(arc)
        return arc
