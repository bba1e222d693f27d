"""
Entities and bounded pools for the interception simulation.

Positions and velocities are ``pygame.Vector2`` in screen pixels; a velocity is
the distance covered in one nominal frame.
"""
from __future__ import annotations

import logging
import math
import random
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

import pygame

logger = logging.getLogger(__name__)

T = TypeVar("T")

UP = pygame.Vector2(0, -1)
DOWN = pygame.Vector2(0, 1)

# Below this squared length a direction is treated as undefined
_DEGENERATE_LENGTH_SQ = 1e-9


class ExplosionColor(Enum):
    HIT = (255, 68, 68)
    INTERCEPT = (255, 255, 68)
    MISS = (68, 68, 255)

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return self.value


def aim(origin: pygame.Vector2, target: pygame.Vector2, speed: float, default: pygame.Vector2) -> pygame.Vector2:
    direction = target - origin
    if direction.length_squared() < _DEGENERATE_LENGTH_SQ:
        logger.debug("degenerate aim from %s to %s, using default direction", origin, target)
        direction = pygame.Vector2(default)
    return direction.normalize() * speed


def heading_degrees(velocity: pygame.Vector2) -> float:
    # Sprites point up, so rotate the travel direction by a quarter turn
    return math.degrees(math.atan2(velocity.y, velocity.x)) + 90.0


def make_trail(length: int) -> Deque[pygame.Vector2]:
    return deque(maxlen=max(1, length))


class Pool(Generic[T]):
    """Bounded FIFO collection; spawning at capacity evicts the oldest entry."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError(f"pool capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._items: List[T] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def full(self) -> bool:
        return len(self._items) >= self._capacity

    def spawn(self, item: T) -> Optional[T]:
        evicted = None
        if self.full:
            evicted = self._items.pop(0)
            logger.debug("pool at capacity %d, evicted oldest %s", self._capacity, type(evicted).__name__)
        self._items.append(item)
        return evicted

    def resize(self, capacity: int) -> List[T]:
        if capacity <= 0:
            raise ValueError(f"pool capacity must be positive, got {capacity}")
        self._capacity = capacity
        overflow = len(self._items) - capacity
        if overflow <= 0:
            return []
        evicted = self._items[:overflow]
        del self._items[:overflow]
        return evicted

    def remove_at(self, index: int) -> T:
        return self._items.pop(index)

    def compact(self, keep: Callable[[T], bool]) -> List[T]:
        removed = [item for item in self._items if not keep(item)]
        if removed:
            self._items = [item for item in self._items if keep(item)]
        return removed

    def clear(self) -> None:
        self._items.clear()

    def for_each(self, fn: Callable[[T], None]) -> None:
        for item in self._items:
            fn(item)

    @property
    def items(self) -> Sequence[T]:
        return tuple(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(tuple(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> T:
        return self._items[index]


@dataclass
class EnemyMissile:
    position: pygame.Vector2
    velocity: pygame.Vector2
    target: pygame.Vector2
    trail: Deque[pygame.Vector2] = field(default_factory=lambda: make_trail(10))

    @classmethod
    def launch(
        cls,
        origin: Tuple[float, float],
        target: Tuple[float, float],
        speed: float,
        trail_length: int = 10,
    ) -> "EnemyMissile":
        start = pygame.Vector2(origin)
        goal = pygame.Vector2(target)
        return cls(start, aim(start, goal, speed, DOWN), goal, make_trail(trail_length))

    @property
    def heading(self) -> float:
        return heading_degrees(self.velocity)

    def update(self, step: float) -> None:
        self.trail.append(self.position.copy())
        self.position += self.velocity * step


@dataclass
class Interceptor:
    position: pygame.Vector2
    velocity: pygame.Vector2
    target: pygame.Vector2
    heading: float
    trail: Deque[pygame.Vector2] = field(default_factory=lambda: make_trail(8))

    @classmethod
    def launch(
        cls,
        origin: Tuple[float, float],
        target: Tuple[float, float],
        speed: float,
        trail_length: int = 8,
    ) -> "Interceptor":
        start = pygame.Vector2(origin)
        goal = pygame.Vector2(target)
        velocity = aim(start, goal, speed, UP)
        return cls(start, velocity, goal, heading_degrees(velocity), make_trail(trail_length))

    def update(self, step: float) -> None:
        self.trail.append(self.position.copy())
        self.position += self.velocity * step
        self.heading = heading_degrees(self.velocity)

    def reached_target(self, radius: float) -> bool:
        return self.position.distance_to(self.target) < radius

    def out_of_bounds(self, width: float, height: float) -> bool:
        x, y = self.position
        return x < 0 or x > width or y < 0 or y > height


@dataclass
class PlayerMissile:
    position: pygame.Vector2
    speed: float
    velocity: pygame.Vector2 = field(default_factory=pygame.Vector2)
    heading: float = 0.0
    half_size: Tuple[float, float] = (25.0, 50.0)
    trail: Deque[pygame.Vector2] = field(default_factory=lambda: make_trail(12))

    def steer(self, up: bool, down: bool, left: bool, right: bool) -> None:
        vx = (self.speed if right else 0.0) - (self.speed if left and not right else 0.0)
        vy = (self.speed if down else 0.0) - (self.speed if up and not down else 0.0)
        if vx and vy:
            vx *= 0.707
            vy *= 0.707
        self.velocity = pygame.Vector2(vx, vy)
        if self.velocity.length_squared() > 0:
            self.heading = heading_degrees(self.velocity)

    def update(self, step: float, width: float, height: float) -> None:
        self.position += self.velocity * step
        half_w, half_h = self.half_size
        self.position.x = max(half_w, min(width - half_w, self.position.x))
        self.position.y = max(half_h, min(height - half_h, self.position.y))
        self.trail.append(self.position.copy())


@dataclass
class Particle:
    position: pygame.Vector2
    velocity: pygame.Vector2


@dataclass
class ExplosionParticleGroup:
    origin: pygame.Vector2
    color: ExplosionColor
    particles: List[Particle]
    life: float = 1.0

    @classmethod
    def burst(
        cls,
        origin: Tuple[float, float],
        color: ExplosionColor,
        count: int,
        speed_range: Tuple[float, float] = (1.0, 3.0),
        rng: Optional[random.Random] = None,
    ) -> "ExplosionParticleGroup":
        rng = rng or random
        center = pygame.Vector2(origin)
        particles = []
        for i in range(count):
            angle = math.tau * i / count
            speed = rng.uniform(*speed_range)
            velocity = pygame.Vector2(math.cos(angle), math.sin(angle)) * speed
            particles.append(Particle(center.copy(), velocity))
        return cls(center, color, particles)

    @property
    def alive(self) -> bool:
        return self.life > 0

    @property
    def alpha(self) -> float:
        return max(0.0, min(1.0, self.life))

    def update(self, step: float, elapsed_s: float, friction: float) -> None:
        self.life -= elapsed_s
        for particle in self.particles:
            particle.position += particle.velocity * step
            particle.velocity *= friction ** step

    def thin(self, max_particles: int) -> None:
        del self.particles[max_particles:]
