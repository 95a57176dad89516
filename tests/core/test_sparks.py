"""Tests for the spark ring buffer."""

import numpy as np
import pytest

from teslacoil.core.sparks import SparkPool


def _pool(capacity: int = 500, seed: int = 7) -> SparkPool:
    return SparkPool(capacity=capacity, rng=np.random.default_rng(seed))


class TestSpawn:
    def test_init_empty(self):
        pool = _pool(64)
        assert pool.positions.shape == (64, 3)
        assert pool.velocities.shape == (64, 3)
        assert pool.lifetimes.shape == (64,)
        assert pool.active_count == 0
        assert pool.cursor == 0

    def test_batch_size_scales_with_intensity(self):
        pool = _pool()
        assert pool.spawn((0, 5, 0), 1.0) == 20
        assert pool.spawn((0, 5, 0), 2.5) == 35
        assert pool.active_count == 55
        assert pool.cursor == 55

    def test_spawn_ranges(self):
        pool = _pool()
        origin = np.array([1.0, 5.0, -2.0])
        n = pool.spawn(origin, 3.0)
        pos = pool.positions[:n]
        vel = pool.velocities[:n]
        life = pool.lifetimes[:n]

        assert np.all(np.abs(pos - origin) <= 0.25 + 1e-5)
        assert np.all(np.abs(vel[:, [0, 2]]) <= 0.1 + 1e-6)
        assert np.all((vel[:, 1] >= 0) & (vel[:, 1] <= 0.2 + 1e-6))
        assert np.all((life >= 0.5) & (life <= 1.0))

    def test_limited_by_free_room(self):
        pool = _pool(capacity=30)
        assert pool.spawn((0, 0, 0), 1.0) == 20
        assert pool.spawn((0, 0, 0), 1.0) == 10
        assert pool.active_count == 30
        assert pool.cursor == 0
        assert pool.spawn((0, 0, 0), 1.0) == 0

    def test_negative_intensity_spawns_nothing(self):
        pool = _pool()
        assert pool.spawn((0, 0, 0), -5.0) == 0
        assert pool.active_count == 0

    def test_wraps_around(self):
        pool = _pool(capacity=30)
        pool.spawn((0, 0, 0), 1.0)
        pool.integrate(1.1)
        assert pool.active_count == 0

        assert pool.spawn((0, 0, 0), 1.0) == 20
        assert pool.cursor == 10
        assert pool.lifetimes[25] > 0
        assert pool.lifetimes[5] > 0
        assert pool.lifetimes[15] <= 0

    def test_never_exceeds_capacity(self):
        pool = _pool(capacity=100)
        rng = np.random.default_rng(3)
        for _ in range(200):
            before = pool.active_count
            written = pool.spawn((0, 5, 0), rng.uniform(0.1, 5.0))
            assert written <= pool.capacity - before
            assert pool.active_count <= pool.capacity
            pool.integrate(rng.uniform(0.0, 0.2))
            assert pool.active_count <= pool.capacity


class TestIntegrate:
    def test_gravity_strictly_decreases_vy(self):
        pool = _pool()
        pool.spawn((0, 5, 0), 1.0)
        history = []
        for _ in range(20):
            pool.integrate(1 / 60)
            history.append(pool.velocities[0, 1])
        assert np.all(np.diff(history) < 0)

    def test_position_advances_by_velocity(self):
        pool = _pool(capacity=4)
        pool.lifetimes[0] = 1.0
        pool.positions[0] = (0.0, 5.0, 0.0)
        pool.velocities[0] = (0.1, 0.2, -0.1)
        pool.integrate(0.5)
        np.testing.assert_allclose(pool.positions[0], (0.05, 5.1, -0.05), atol=1e-6)
        assert pool.velocities[0, 1] == pytest.approx(0.2 - 0.05)
        assert pool.lifetimes[0] == pytest.approx(0.5)

    def test_fade_shrinks_toward_origin(self):
        pool = _pool(capacity=4)
        pool.positions[0] = (1.0, 1.0, 1.0)
        pool.lifetimes[0] = 0.25
        pool.integrate(0.15)
        # lifetime 0.1 -> scaled by 0.1 / 0.2
        np.testing.assert_allclose(pool.positions[0], (0.5, 0.5, 0.5), atol=1e-5)

    def test_expired_rest_at_origin(self):
        pool = _pool()
        pool.spawn((0, 5, 0), 2.0)
        for _ in range(120):
            pool.integrate(1 / 60)
        assert pool.active_count == 0
        np.testing.assert_allclose(pool.positions, 0.0, atol=1e-6)

    def test_unused_slots_stay_at_origin(self):
        pool = _pool(capacity=50)
        for _ in range(30):
            pool.integrate(1 / 60)
        assert np.all(pool.positions == 0)
        assert pool.active_count == 0

    def test_lifetime_goes_negative(self):
        pool = _pool()
        pool.spawn((0, 5, 0), 1.0)
        pool.integrate(2.0)
        assert np.all(pool.lifetimes[:20] < 0)
