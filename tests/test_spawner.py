import random

import pytest

from entities import EnemyMissile, Pool
from settings import GameSettings
from spawner import Spawner

SETTINGS = GameSettings(
    width=800,
    height=600,
    spawn_interval_ms=1000.0,
    spawn_interval_floor_ms=900.0,
    spawn_interval_step_ms=40.0,
)


def test_spawns_when_interval_elapses_and_ramps_difficulty():
    spawner = Spawner(SETTINGS, random.Random(3))
    pool = Pool(12)
    assert spawner.tick(999, pool) is None
    missile = spawner.tick(1, pool)
    assert isinstance(missile, EnemyMissile)
    assert len(pool) == 1
    assert spawner.timer_ms == 0.0
    assert spawner.interval_ms == 960.0


def test_interval_is_clamped_to_floor():
    spawner = Spawner(SETTINGS, random.Random(3))
    pool = Pool(12)
    intervals = []
    for _ in range(6):
        spawner.tick(spawner.interval_ms, pool)
        intervals.append(spawner.interval_ms)
    assert intervals == [960.0, 920.0, 900.0, 900.0, 900.0, 900.0]


def test_full_pool_skips_spawn_without_eviction():
    spawner = Spawner(SETTINGS, random.Random(3))
    pool = Pool(1)
    first = spawner.tick(1000, pool)
    assert spawner.tick(1000, pool) is None
    assert list(pool) == [first]


def test_spawned_missile_starts_on_top_edge_and_aims_at_ground():
    spawner = Spawner(SETTINGS, random.Random(11))
    pool = Pool(12)
    for _ in range(20):
        missile = spawner.spawn(pool)
        assert missile.position.y == 0.0
        assert 0.0 <= missile.position.x <= 800.0
        assert missile.target.y == 600.0
        assert 1.0 <= missile.velocity.length() <= 2.5 + 1e-9
        assert missile.velocity.y > 0


def test_speed_range_tightens_with_difficulty():
    spawner = Spawner(SETTINGS, random.Random(3))
    assert spawner.speed_range == (1.0, 2.5)
    spawner.interval_ms = SETTINGS.spawn_interval_floor_ms
    low, high = spawner.speed_range
    assert low == pytest.approx(1.75)
    assert high == 2.5


def test_reset_restores_interval():
    spawner = Spawner(SETTINGS, random.Random(3))
    pool = Pool(12)
    spawner.tick(1000, pool)
    spawner.tick(500, pool)
    spawner.reset()
    assert spawner.interval_ms == 1000.0
    assert spawner.timer_ms == 0.0
