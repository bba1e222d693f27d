import math
import random

import pygame
import pytest

from entities import (
    EnemyMissile,
    ExplosionColor,
    ExplosionParticleGroup,
    Interceptor,
    PlayerMissile,
    Pool,
    aim,
    heading_degrees,
)


def test_pool_evicts_oldest_at_capacity():
    pool = Pool(3)
    for item in "abc":
        assert pool.spawn(item) is None
    assert pool.spawn("d") == "a"
    assert list(pool) == ["b", "c", "d"]
    assert pool.full


def test_pool_never_exceeds_capacity():
    rng = random.Random(5)
    pool = Pool(4)
    for i in range(200):
        if len(pool) and rng.random() < 0.3:
            pool.remove_at(rng.randrange(len(pool)))
        else:
            pool.spawn(i)
        assert len(pool) <= pool.capacity


def test_pool_resize_drops_oldest():
    pool = Pool(5)
    for i in range(5):
        pool.spawn(i)
    assert pool.resize(3) == [0, 1]
    assert list(pool) == [2, 3, 4]
    assert pool.capacity == 3


def test_pool_compact_keeps_order():
    pool = Pool(6)
    for i in range(6):
        pool.spawn(i)
    removed = pool.compact(lambda n: n % 2 == 0)
    assert removed == [1, 3, 5]
    assert list(pool) == [0, 2, 4]


def test_pool_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        Pool(0)


def test_aim_substitutes_default_for_zero_length_direction():
    origin = pygame.Vector2(50, 50)
    velocity = aim(origin, pygame.Vector2(50, 50), 6.0, pygame.Vector2(0, -1))
    assert math.isfinite(velocity.x) and math.isfinite(velocity.y)
    assert velocity == pygame.Vector2(0, -6)


def test_enemy_missile_velocity_and_bounded_trail():
    missile = EnemyMissile.launch((0, 0), (300, 400), 2.5, trail_length=4)
    assert missile.velocity.length() == pytest.approx(2.5)
    assert missile.velocity.x == pytest.approx(1.5)
    for _ in range(10):
        missile.update(1.0)
    assert len(missile.trail) == 4
    assert missile.position.y == pytest.approx(20.0)


def test_interceptor_heading_points_sprite_along_travel():
    straight_up = Interceptor.launch((100, 500), (100, 100), 6.0)
    assert straight_up.heading == pytest.approx(0.0)
    to_the_right = Interceptor.launch((100, 500), (400, 500), 6.0)
    assert to_the_right.heading == pytest.approx(90.0)
    assert heading_degrees(pygame.Vector2(0, 1)) == pytest.approx(180.0)


def test_interceptor_arrival_and_bounds():
    interceptor = Interceptor.launch((100, 100), (100, 85), 6.0)
    assert not interceptor.reached_target(10)
    assert interceptor.reached_target(20)
    interceptor.position = pygame.Vector2(-1, 50)
    assert interceptor.out_of_bounds(800, 600)


def test_player_missile_diagonal_speed_and_clamping():
    player = PlayerMissile(pygame.Vector2(400, 300), speed=5.0, half_size=(25, 50))
    player.steer(up=True, down=False, left=True, right=False)
    assert player.velocity.x == pytest.approx(-5 * 0.707)
    assert player.velocity.y == pytest.approx(-5 * 0.707)

    player.steer(up=False, down=False, left=True, right=True)
    assert player.velocity == pygame.Vector2(5, 0)

    player.position = pygame.Vector2(26, 51)
    player.steer(up=True, down=False, left=True, right=False)
    player.update(1.0, 800, 600)
    assert player.position == pygame.Vector2(25, 50)


def test_explosion_particles_are_evenly_spread_and_damped():
    group = ExplosionParticleGroup.burst((0, 0), ExplosionColor.HIT, 8, (2.0, 2.0), random.Random(0))
    assert len(group.particles) == 8
    angles = sorted(round(math.degrees(math.atan2(p.velocity.y, p.velocity.x))) % 360 for p in group.particles)
    assert angles == [0, 45, 90, 135, 180, 225, 270, 315]

    group.update(1.0, 0.25, 0.98)
    assert group.life == pytest.approx(0.75)
    assert group.alpha == pytest.approx(0.75)
    assert group.particles[0].velocity.length() == pytest.approx(2.0 * 0.98)

    group.update(1.0, 0.8, 0.98)
    assert not group.alive
    assert group.alpha == 0.0


def test_explosion_friction_compounds_over_long_steps():
    group = ExplosionParticleGroup.burst((0, 0), ExplosionColor.HIT, 4, (2.0, 2.0), random.Random(0))
    group.update(2.0, 0.1, 0.98)
    assert group.particles[0].velocity.length() == pytest.approx(2.0 * 0.98 ** 2)
    assert group.particles[0].position.length() == pytest.approx(4.0)


def test_explosion_thin_caps_particles():
    group = ExplosionParticleGroup.burst((0, 0), ExplosionColor.MISS, 15)
    group.thin(8)
    assert len(group.particles) == 8
