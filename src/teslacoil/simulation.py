"""
Per-frame orchestration of the coil simulation.

Each step runs in a fixed order:
  clock -> emitter position -> age/expire arcs -> maybe create one arc
  -> integrate sparks -> payload
and returns a FramePayload for the renderer, cue synth and exporter.
"""

import time
from dataclasses import dataclass
from typing import Callable, Iterator, List, Tuple

import numpy as np

from teslacoil.config import CoilConfig, CoilParams
from teslacoil.core.arcs import AudioCue, ArcGenerator
from teslacoil.core.lifecycle import ArcManager
from teslacoil.core.sparks import SparkPool


class FrameClock:
    """
    Simulation clock.

    With ``fps`` set, every tick advances exactly ``1 / fps`` seconds
    (deterministic, for offline rendering). Without it, ticks follow
    ``time.monotonic``.
    """

    def __init__(self, fps: int | None = None):
        self.fps = fps
        self.now = 0.0
        self._last: float | None = None

    def tick(self) -> Tuple[float, float]:
        if self.fps:
            dt = 1.0 / self.fps
        else:
            t = time.monotonic()
            dt = 0.0 if self._last is None else t - self._last
            self._last = t
        self.now += dt
        return self.now, dt


@dataclass(frozen=True)
class ArcSnapshot:
    """Render-side view of an arc at one frame."""
    points: np.ndarray
    color: Tuple[int, int, int]
    opacity: float
    thickness: float


@dataclass(frozen=True)
class FramePayload:
    """Everything the collaborators need for one frame."""
    frame_index: int
    time: float
    dt: float
    emitter: np.ndarray
    arcs: Tuple[ArcSnapshot, ...]
    spark_positions: np.ndarray
    spark_alive: np.ndarray
    cues: Tuple[AudioCue, ...]
    arcs_created: int = 0


class CoilSimulation:
    """Drives the spark pool and arc manager one frame at a time."""

    def __init__(
        self,
        config: CoilConfig | None = None,
        seed: int | None = None,
        clock: FrameClock | None = None,
        emitter_path: Callable[[float], np.ndarray] | None = None,
    ):
        self.cfg = config or CoilConfig()
        self.clock = clock or FrameClock(self.cfg.fps)
        self.emitter_path = emitter_path

        # Independent streams so spark draws never shift arc shapes
        spark_seed, arc_seed, gate_seed = np.random.SeedSequence(seed).spawn(3)

        self.sparks = SparkPool(self.cfg.max_sparks, rng=np.random.default_rng(spark_seed))
        self._pending_cues: List[AudioCue] = []
        self.generator = ArcGenerator(
            self.sparks,
            self._pending_cues.append,
            max_points=self.cfg.max_arc_points,
            rng=np.random.default_rng(arc_seed),
        )
        self.arcs = ArcManager(
            self.generator,
            lifetime=self.cfg.arc_lifetime,
            rng=np.random.default_rng(gate_seed),
        )

        self.frame_index = 0
        self.emitter = np.asarray(self.cfg.emitter_position, dtype=np.float64)

    def _emitter_position(self, now: float) -> np.ndarray:
        if self.emitter_path is None:
            return np.asarray(self.cfg.emitter_position, dtype=np.float64)
        return np.asarray(self.emitter_path(now), dtype=np.float64)

    def step(self, params: CoilParams | None = None) -> FramePayload:
        params = params or self.cfg.params
        now, dt = self.clock.tick()

        self.emitter = self._emitter_position(now)

        self.arcs.age_and_expire(now, params.arc_color)
        created = self.arcs.maybe_create(now, dt, params, self.emitter)

        self.sparks.integrate(dt)

        cues = tuple(self._pending_cues) if params.sound_enabled else ()
        self._pending_cues.clear()

        payload = FramePayload(
            frame_index=self.frame_index,
            time=now,
            dt=dt,
            emitter=self.emitter.copy(),
            arcs=tuple(
                ArcSnapshot(arc.points, arc.color, arc.opacity, arc.thickness)
                for arc in self.arcs.arcs
            ),
            spark_positions=self.sparks.positions.copy(),
            spark_alive=self.sparks.alive_mask(),
            cues=cues,
            arcs_created=0 if created is None else 1,
        )
        self.frame_index += 1
        return payload

    def run(self, n_frames: int, params: CoilParams | None = None) -> Iterator[FramePayload]:
        for _ in range(n_frames):
            yield self.step(params)
