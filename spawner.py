import logging
import random
from typing import Optional, Tuple

from entities import EnemyMissile, Pool
from settings import GameSettings

logger = logging.getLogger(__name__)


class Spawner:
    """Drops enemy missiles on a shrinking interval.

    The interval shortens by a fixed step every time the timer elapses and never
    goes below the configured floor; only ``reset`` restores it.
    """

    def __init__(self, settings: GameSettings, rng: Optional[random.Random] = None) -> None:
        self.settings = settings
        self.rng = rng or random.Random()
        self.timer_ms = 0.0
        self.interval_ms = settings.spawn_interval_ms

    def reset(self) -> None:
        self.timer_ms = 0.0
        self.interval_ms = self.settings.spawn_interval_ms

    @property
    def progress(self) -> float:
        span = self.settings.spawn_interval_ms - self.settings.spawn_interval_floor_ms
        if span <= 0:
            return 1.0
        return max(0.0, min(1.0, (self.settings.spawn_interval_ms - self.interval_ms) / span))

    @property
    def speed_range(self) -> Tuple[float, float]:
        low, high = self.settings.enemy_speed_range
        return low + (high - low) * 0.5 * self.progress, high

    def tick(self, delta_ms: float, pool: Pool[EnemyMissile]) -> Optional[EnemyMissile]:
        self.timer_ms += delta_ms
        if self.timer_ms < self.interval_ms:
            return None
        self.timer_ms = 0.0

        missile = None
        if pool.full:
            logger.debug("enemy pool full (%d), skipping spawn", pool.capacity)
        else:
            missile = self.spawn(pool)

        self.interval_ms = max(
            self.settings.spawn_interval_floor_ms,
            self.interval_ms - self.settings.spawn_interval_step_ms,
        )
        return missile

    def spawn(self, pool: Pool[EnemyMissile]) -> EnemyMissile:
        width = self.settings.width
        origin = (self.rng.uniform(0, width), 0.0)
        target = (self.rng.uniform(0, width), float(self.settings.height))
        speed = self.rng.uniform(*self.speed_range)
        missile = EnemyMissile.launch(origin, target, speed, self.settings.enemy_trail_length)
        pool.spawn(missile)
        return missile
