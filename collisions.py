from dataclasses import dataclass
from typing import List, Optional, Union

import pygame

from entities import EnemyMissile, Interceptor, PlayerMissile, Pool


@dataclass(frozen=True)
class Intercept:
    enemy: EnemyMissile
    interceptor: Union[Interceptor, PlayerMissile]
    point: pygame.Vector2


def midpoint(a: pygame.Vector2, b: pygame.Vector2) -> pygame.Vector2:
    return (a + b) / 2


def resolve_interceptors(
    enemies: Pool[EnemyMissile],
    interceptors: Pool[Interceptor],
    radius: float,
) -> List[Intercept]:
    # Backward over enemies so removal never skips one; the first interceptor
    # in pool order within range claims the missile.
    intercepts: List[Intercept] = []
    for i in range(len(enemies) - 1, -1, -1):
        enemy = enemies[i]
        for j, interceptor in enumerate(interceptors.items):
            if enemy.position.distance_to(interceptor.position) < radius:
                enemies.remove_at(i)
                interceptors.remove_at(j)
                intercepts.append(Intercept(enemy, interceptor, midpoint(enemy.position, interceptor.position)))
                break
    return intercepts


def resolve_player_missile(
    enemies: Pool[EnemyMissile],
    player: Optional[PlayerMissile],
    radius: float,
) -> Optional[Intercept]:
    if player is None:
        return None
    for i in range(len(enemies) - 1, -1, -1):
        enemy = enemies[i]
        if enemy.position.distance_to(player.position) < radius:
            enemies.remove_at(i)
            return Intercept(enemy, player, midpoint(enemy.position, player.position))
    return None


def ground_impacts(enemies: Pool[EnemyMissile], threshold: float) -> List[EnemyMissile]:
    return enemies.compact(lambda missile: missile.position.y < threshold)


def spent_interceptors(
    interceptors: Pool[Interceptor],
    arrival_radius: float,
    width: float,
    height: float,
) -> List[Interceptor]:
    return interceptors.compact(
        lambda interceptor: not (
            interceptor.reached_target(arrival_radius) or interceptor.out_of_bounds(width, height)
        )
    )
