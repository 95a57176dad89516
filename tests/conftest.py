"""Pytest configuration and shared fixtures."""

import numpy as np
import pytest

from teslacoil.config import CoilConfig
from teslacoil.core.arcs import ArcGenerator
from teslacoil.core.sparks import SparkPool
from teslacoil.simulation import ArcSnapshot, FramePayload

WHITE = (255, 255, 255)


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random source for reproducible draws."""
    return np.random.default_rng(1234)


@pytest.fixture
def spark_pool(rng) -> SparkPool:
    return SparkPool(capacity=500, rng=rng)


@pytest.fixture
def cues() -> list:
    """Collects cues emitted by a generator."""
    return []


@pytest.fixture
def generator(spark_pool, cues) -> ArcGenerator:
    return ArcGenerator(spark_pool, cues.append, max_points=50, rng=np.random.default_rng(99))


@pytest.fixture
def small_config() -> CoilConfig:
    """Tiny frame size so render tests stay fast."""
    return CoilConfig(width=80, height=60, fps=30, glow_enabled=False,
                      falloff_strength=0.0, night_falloff_strength=0.0)


def make_payload(arcs=(), spark_positions=None, capacity: int = 16, cues=()) -> FramePayload:
    """Build a FramePayload by hand."""
    if spark_positions is None:
        positions = np.zeros((capacity, 3), dtype=np.float32)
        alive = np.zeros(capacity, dtype=bool)
    else:
        positions = np.asarray(spark_positions, dtype=np.float32)
        alive = np.ones(len(positions), dtype=bool)
    return FramePayload(
        frame_index=0,
        time=0.0,
        dt=1 / 30,
        emitter=np.array([0.0, 5.7, 0.0]),
        arcs=tuple(arcs),
        spark_positions=positions,
        spark_alive=alive,
        cues=tuple(cues),
    )


def horizontal_arc(color=WHITE, opacity: float = 0.8) -> ArcSnapshot:
    """A straight arc across the middle of the default camera's view."""
    points = np.array([[-3.0, 2.0, 0.0], [0.0, 2.0, 0.0], [3.0, 2.0, 0.0]])
    return ArcSnapshot(points=points, color=color, opacity=opacity, thickness=2.0)


@pytest.fixture
def payload_factory():
    return make_payload


@pytest.fixture
def arc_snapshot():
    return horizontal_arc
