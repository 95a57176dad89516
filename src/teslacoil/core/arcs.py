"""
Procedural arc path generation.

An arc is a jittered polyline walked from the emitter along one fixed,
downward-biased direction:
- Jitter grows with distance, so paths leave the emitter straight and
  fray toward the tip.
- Side branches are walked from a step point and spliced into the same
  point sequence, just before that step point.
- Reaching the ground plane (y <= 0) ends the walk with a louder cue.

Every arc spawns a batch of sparks at its start and emits a normal cue.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, List, Tuple

import numpy as np

from teslacoil.core.sparks import SparkPool

INITIAL_OPACITY = 0.8
BRANCH_CHANCE = 0.05
BRANCH_MIN_REMAINING = 5
GROUND_STRIKE_GAIN = 1.5

CUE_NORMAL = "normal"
CUE_GROUND_STRIKE = "ground_strike"


@dataclass(frozen=True)
class AudioCue:
    """A timing event for the audio layer."""
    time: float
    intensity: float
    kind: str = CUE_NORMAL


@dataclass(eq=False)
class Arc:
    """
    One visible discharge path.

    ``points`` is a read-only (N, 3) array; only ``color`` and ``opacity``
    change after creation.
    """
    points: np.ndarray
    creation_time: float
    color: Tuple[int, int, int]
    opacity: float = INITIAL_OPACITY
    thickness: float = 1.0
    released: bool = field(default=False, repr=False)

    @property
    def end_position(self) -> np.ndarray:
        return self.points[-1]

    def age(self, now: float) -> float:
        return now - self.creation_time

    def release(self):
        """Drop the arc. Must be called exactly once."""
        if self.released:
            raise RuntimeError("Arc released twice")
        self.released = True


class ArcGenerator:
    """
    Builds arcs and fires their effects.

    Sparks go to ``spark_pool``; audio cues are handed to ``cue_sink``
    (any callable taking an AudioCue, e.g. ``list.append``).
    """

    def __init__(
        self,
        spark_pool: SparkPool,
        cue_sink: Callable[[AudioCue], None],
        max_points: int = 50,
        rng: np.random.Generator | None = None,
    ):
        self.spark_pool = spark_pool
        self.cue_sink = cue_sink
        self.max_points = max_points
        self.rng = rng if rng is not None else np.random.default_rng()

    def _direction(self) -> np.ndarray:
        rng = self.rng
        d = np.array([
            rng.uniform(-1.0, 1.0),
            rng.uniform(-1.4, 0.6),  # more likely to head for the ground
            rng.uniform(-1.0, 1.0),
        ])
        norm = np.linalg.norm(d)
        if norm == 0:
            return np.array([0.0, -1.0, 0.0])
        return d / norm

    def _jitter(self, scale: float) -> np.ndarray:
        scale = abs(scale)
        return self.rng.uniform(-scale, scale, size=3)

    def _walk_branch(
        self,
        points: List[np.ndarray],
        origin: np.ndarray,
        direction: np.ndarray,
        arc_length: float,
        jitter_scale: float,
        budget: int,
    ) -> bool:
        """Append branch points after ``origin``. Returns True on ground strike."""
        rng = self.rng
        branch_dir = direction + rng.uniform(-0.25, 0.25, size=3)
        norm = np.linalg.norm(branch_dir)
        if norm > 0:
            branch_dir = branch_dir / norm
        branch_length = arc_length * (0.2 + rng.random() * 0.3)
        segments = math.floor(5 + rng.random() * 5)
        step = branch_length / segments

        pos = origin.copy()
        for _ in range(min(segments, budget)):
            pos = pos + branch_dir * step + self._jitter(jitter_scale * 0.5)
            points.append(pos)
            if pos[1] <= 0:
                return True
        return False

    def generate(
        self,
        start,
        intensity: float,
        color: Tuple[int, int, int],
        now: float = 0.0,
    ) -> Arc:
        rng = self.rng
        start = np.asarray(start, dtype=np.float64)

        arc_length = 2 + rng.random() * 5 * intensity
        n_segments = math.floor(10 + rng.random() * (self.max_points - 10))
        direction = self._direction()
        segment_length = arc_length / n_segments

        points = [start.copy()]
        current = start.copy()
        struck = False

        for i in range(1, n_segments):
            jitter_scale = 0.5 * (i / n_segments) * intensity
            next_pos = current + direction * segment_length + self._jitter(jitter_scale)

            if rng.random() < BRANCH_CHANCE * intensity and i < n_segments - BRANCH_MIN_REMAINING:
                # Leave room for the rest of the main path.
                budget = self.max_points - len(points) - (n_segments - i)
                if budget > 0:
                    struck = self._walk_branch(
                        points, next_pos, direction, arc_length, jitter_scale, budget
                    )
                    if struck:
                        break

            points.append(next_pos)
            current = next_pos

            if next_pos[1] <= 0:
                struck = True
                break

        if struck:
            self.cue_sink(AudioCue(now, intensity * GROUND_STRIKE_GAIN, CUE_GROUND_STRIKE))

        thickness = 1.0 + rng.random()

        arr = np.array(points, dtype=np.float64)
        arr.setflags(write=False)
        arc = Arc(points=arr, creation_time=now, color=tuple(color), thickness=thickness)

        self.cue_sink(AudioCue(now, intensity, CUE_NORMAL))
        self.spark_pool.spawn(start, intensity)
        return arc
