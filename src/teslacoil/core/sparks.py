"""
Fixed-capacity spark particle pool.

Sparks live in parallel numpy arrays indexed by slot. New batches are
written at a ring cursor, so once the pool is full the oldest slots are
overwritten. Nothing is allocated after construction.
"""

import math

import numpy as np

GRAVITY = 0.1
FADE_TIME = 0.2


class SparkPool:
    """Ring buffer of ballistic sparks with shrink-to-origin fade."""

    def __init__(self, capacity: int = 500, rng: np.random.Generator | None = None):
        self.capacity = capacity
        self.rng = rng if rng is not None else np.random.default_rng()

        self.positions = np.zeros((capacity, 3), dtype=np.float32)
        self.velocities = np.zeros((capacity, 3), dtype=np.float32)
        self.lifetimes = np.zeros(capacity, dtype=np.float32)

        self.cursor = 0
        self.active_count = 0

    def alive_mask(self) -> np.ndarray:
        return self.lifetimes > 0

    def _recount(self):
        self.active_count = int(np.count_nonzero(self.lifetimes > 0))

    def spawn(self, origin, intensity: float) -> int:
        """
        Write a batch of sparks around ``origin``.

        The batch size is ``10 + floor(10 * intensity)``, limited by the
        free room in the pool. Slots are taken from the cursor onward and
        wrap around the end of the arrays.

        Returns:
            Number of sparks written.
        """
        wanted = 10 + math.floor(10 * intensity)
        n = max(0, min(wanted, self.capacity - self.active_count))
        if n == 0:
            return 0

        slots = (self.cursor + np.arange(n)) % self.capacity
        origin = np.asarray(origin, dtype=np.float32)

        self.positions[slots] = origin + self.rng.uniform(-0.25, 0.25, size=(n, 3))
        self.velocities[slots, 0] = self.rng.uniform(-0.1, 0.1, size=n)
        self.velocities[slots, 1] = self.rng.uniform(0.0, 0.2, size=n)
        self.velocities[slots, 2] = self.rng.uniform(-0.1, 0.1, size=n)
        self.lifetimes[slots] = self.rng.uniform(0.5, 1.0, size=n)

        self.cursor = int((self.cursor + n) % self.capacity)
        self._recount()
        return n

    def integrate(self, dt: float):
        """Advance every slot by ``dt`` seconds."""
        self.positions += self.velocities * dt
        self.velocities[:, 1] -= GRAVITY * dt
        self.lifetimes -= dt

        # Collapse toward the origin over the last FADE_TIME seconds.
        # Clamped so expired slots rest at the origin.
        fading = self.lifetimes < FADE_TIME
        if fading.any():
            alpha = np.clip(self.lifetimes[fading] / FADE_TIME, 0.0, 1.0)
            self.positions[fading] *= alpha[:, None]

        self._recount()
