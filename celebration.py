import math
import random
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional

import pygame

CELEBRATION_SPEED = 4.0
CELEBRATION_LEAD = 120.0
TEXT_THRESHOLD = 0.35
TEXT_FADE_SECONDS = 1.2
SPARKS_PER_TICK = 3
MAX_SPARKS = 150
SPARK_DECAY = 1.5

SPARK_COLORS = (
    (255, 215, 80),
    (120, 200, 255),
    (255, 255, 255),
)


@dataclass
class Spark:
    position: pygame.Vector2
    velocity: pygame.Vector2
    color: tuple
    life: float = 1.0


class CelebrationAnimation:
    """Victory fly-by: a banner crosses the screen trailing spark bursts."""

    text = "Cities defended!"

    def __init__(
        self,
        width: float,
        height: float,
        speed: float = CELEBRATION_SPEED,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.width = width
        self.height = height
        self.speed = speed
        self.rng = rng or random.Random()
        self.position = pygame.Vector2(-CELEBRATION_LEAD, height * 0.3)
        self.sparks: Deque[Spark] = deque(maxlen=MAX_SPARKS)
        self.text_alpha = 0.0
        self.elapsed = 0.0
        self.finished = False

    @property
    def text_visible(self) -> bool:
        return self.position.x >= self.width * TEXT_THRESHOLD

    def update(self, step: float, elapsed_s: float) -> None:
        if self.finished:
            return
        self.elapsed += elapsed_s
        self.position.x += self.speed * step
        self.position.y = self.height * 0.3 + math.sin(self.elapsed * 3.0) * 12.0

        for _ in range(SPARKS_PER_TICK):
            angle = self.rng.uniform(math.pi * 0.6, math.pi * 1.4)
            speed = self.rng.uniform(0.5, 2.5)
            velocity = pygame.Vector2(math.cos(angle), math.sin(angle)) * speed
            self.sparks.append(Spark(self.position.copy(), velocity, self.rng.choice(SPARK_COLORS)))

        for spark in self.sparks:
            spark.position += spark.velocity * step
            spark.velocity *= 0.96
            spark.life -= elapsed_s * SPARK_DECAY
        while self.sparks and self.sparks[0].life <= 0:
            self.sparks.popleft()

        if self.text_visible:
            self.text_alpha = min(1.0, self.text_alpha + elapsed_s / TEXT_FADE_SECONDS)

        if self.position.x - CELEBRATION_LEAD > self.width:
            self.finished = True
