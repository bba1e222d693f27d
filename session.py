"""
Game session: state machine, counters, entity pools and the per-frame tick.

The host owns the frame loop and calls ``run_frame`` once per display refresh;
input handlers call the launch / pause / start methods between frames.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Tuple

import pygame

from celebration import CelebrationAnimation
from collisions import Intercept, ground_impacts, resolve_interceptors, resolve_player_missile, spent_interceptors
from entities import (
    EnemyMissile,
    ExplosionColor,
    ExplosionParticleGroup,
    Interceptor,
    PlayerMissile,
    Pool,
    make_trail,
)
from settings import CONTROL_MODES, FRAME_MS, GameSettings
from spawner import Spawner

logger = logging.getLogger(__name__)

Tone = Tuple[float, float, str]

LAUNCH_TONE: Tone = (800, 0.2, "square")
INTERCEPT_TONE: Tone = (600, 0.3, "triangle")
HIT_TONE: Tone = (200, 0.5, "sawtooth")
GAME_OVER_TONE: Tone = (150, 1.0, "sawtooth")
VICTORY_TONES: Tuple[Tone, ...] = ((440, 0.5, "sine"), (550, 0.5, "sine"))

# Adaptive quality floors for enemy / interceptor / explosion pools
QUALITY_FLOORS = (4, 3, 3)
QUALITY_FACTOR = 0.8
QUALITY_MAX_PARTICLES = 8


class GameState(Enum):
    LOADING = "loading"
    MENU = "menu"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "gameOver"
    VICTORY = "victory"
    SPECIAL_ANIMATION = "specialAnimation"


TRANSITIONS: Dict[GameState, FrozenSet[GameState]] = {
    GameState.LOADING: frozenset({GameState.MENU}),
    GameState.MENU: frozenset({GameState.PLAYING}),
    GameState.PLAYING: frozenset(
        {GameState.PAUSED, GameState.GAME_OVER, GameState.VICTORY, GameState.SPECIAL_ANIMATION}
    ),
    GameState.PAUSED: frozenset({GameState.PLAYING}),
    GameState.SPECIAL_ANIMATION: frozenset({GameState.VICTORY}),
    GameState.GAME_OVER: frozenset({GameState.MENU}),
    GameState.VICTORY: frozenset({GameState.MENU}),
}


@dataclass(frozen=True)
class Stats:
    score: int
    hits: int
    intercepts: int


def _ignore(*_args, **_kwargs) -> None:
    return None


@dataclass
class SessionHooks:
    play_tone: Callable[[float, float, str], None] = field(default=_ignore)
    stats_changed: Callable[[Stats], None] = field(default=_ignore)
    state_changed: Callable[[GameState, GameState], None] = field(default=_ignore)
    celebration_complete: Callable[[], None] = field(default=_ignore)


class GameSession:
    def __init__(
        self,
        settings: GameSettings,
        hooks: Optional[SessionHooks] = None,
        rng: Optional[random.Random] = None,
        expected_assets: int = 0,
    ) -> None:
        self.settings = settings
        self.hooks = hooks or SessionHooks()
        self.rng = rng or random.Random()
        self.state = GameState.LOADING
        self.control_mode = settings.control_mode

        self.score = 0
        self.hits = 0
        self.intercepts = 0

        self.enemy_missiles: Pool[EnemyMissile] = Pool(settings.max_enemy_missiles)
        self.interceptors: Pool[Interceptor] = Pool(settings.max_interceptors)
        self.explosions: Pool[ExplosionParticleGroup] = Pool(settings.max_explosions)
        self.player_missile: Optional[PlayerMissile] = None
        self.celebration: Optional[CelebrationAnimation] = None
        self.spawner = Spawner(settings, self.rng)

        self.clock_ms = 0.0
        self.last_tap_ms: Optional[float] = None
        self.directional_input = (False, False, False, False)

        self.fps = settings.target_fps
        self._fps_frames = 0
        self._fps_window_start = 0.0

        self.assets_expected = max(0, expected_assets)
        self.assets_settled = 0
        self.assets_failed = 0
        self._check_loaded()

    # -- queries ---------------------------------------------------------

    @property
    def stats(self) -> Stats:
        return Stats(self.score, self.hits, self.intercepts)

    @property
    def launch_pad(self) -> pygame.Vector2:
        return pygame.Vector2(self.settings.launch_pad)

    @property
    def assets_ready(self) -> bool:
        return self.assets_settled >= self.assets_expected

    # -- loading ---------------------------------------------------------

    def asset_settled(self, name: str, ok: bool) -> None:
        if self.assets_ready:
            return
        self.assets_settled += 1
        if not ok:
            self.assets_failed += 1
            logger.warning("asset %s failed to load, falling back to primitives", name)
        self._check_loaded()

    def _check_loaded(self) -> None:
        if self.state is GameState.LOADING and self.assets_ready:
            self._transition(GameState.MENU)

    # -- state machine ---------------------------------------------------

    def _transition(self, new_state: GameState) -> bool:
        if new_state not in TRANSITIONS[self.state]:
            logger.debug("ignored transition %s -> %s", self.state.value, new_state.value)
            return False
        old_state, self.state = self.state, new_state
        logger.info("state %s -> %s", old_state.value, new_state.value)
        self._notify(self.hooks.state_changed, old_state, new_state)
        return True

    def start(self) -> bool:
        if self.state is not GameState.MENU:
            logger.debug("start ignored in state %s", self.state.value)
            return False
        self.reset()
        return self._transition(GameState.PLAYING)

    def reset(self) -> None:
        self.score = 0
        self.hits = 0
        self.intercepts = 0
        self.enemy_missiles.clear()
        self.interceptors.clear()
        self.explosions.clear()
        self.player_missile = None
        self.celebration = None
        self.spawner.reset()
        self.last_tap_ms = None
        self.directional_input = (False, False, False, False)
        self._fps_frames = 0
        self._fps_window_start = self.clock_ms
        self._stats_changed()

    def toggle_pause(self) -> bool:
        if self.state is GameState.PLAYING:
            return self._transition(GameState.PAUSED)
        if self.state is GameState.PAUSED:
            # Time spent paused must not count against the frame rate
            self._fps_frames = 0
            self._fps_window_start = self.clock_ms
            return self._transition(GameState.PLAYING)
        logger.debug("pause ignored in state %s", self.state.value)
        return False

    def restart(self) -> bool:
        return self.state in (GameState.GAME_OVER, GameState.VICTORY) and self._transition(GameState.MENU)

    def set_control_mode(self, mode: str) -> None:
        if mode not in CONTROL_MODES:
            raise ValueError(f"unknown control mode {mode!r}")
        if mode == self.control_mode:
            return
        self.control_mode = mode
        self.interceptors.clear()
        self.player_missile = None
        self.directional_input = (False, False, False, False)
        logger.info("control mode set to %s", mode)

    # -- input -----------------------------------------------------------

    def tap(self, x: float, y: float) -> Optional[Interceptor]:
        if self.last_tap_ms is not None and self.clock_ms - self.last_tap_ms <= self.settings.touch_cooldown_ms:
            logger.debug("tap at (%.0f, %.0f) inside cooldown", x, y)
            return None
        interceptor = self.launch_interceptor(x, y)
        if interceptor is not None:
            self.last_tap_ms = self.clock_ms
        return interceptor

    def launch_interceptor(self, x: float, y: float) -> Optional[Interceptor]:
        if self.state is not GameState.PLAYING or self.control_mode != "touch":
            return None
        if self.settings.single_interceptor and len(self.interceptors):
            logger.debug("interceptor already in flight, launch ignored")
            return None
        interceptor = Interceptor.launch(
            self.settings.launch_pad,
            (x, y),
            self.settings.interceptor_speed,
            self.settings.interceptor_trail_length,
        )
        self.interceptors.spawn(interceptor)
        self._play(LAUNCH_TONE)
        return interceptor

    def set_directional_input(self, up: bool, down: bool, left: bool, right: bool) -> None:
        self.directional_input = (up, down, left, right)

    # -- frame -----------------------------------------------------------

    def run_frame(self, delta_ms: float) -> None:
        delta_ms = max(0.0, delta_ms)
        self.clock_ms += delta_ms
        try:
            if self.state is GameState.SPECIAL_ANIMATION:
                self._update_celebration(delta_ms)
            elif self.state is GameState.PLAYING:
                self._tick(delta_ms)
        except Exception:
            logger.exception("frame update failed, skipping frame")

    def _step(self, delta_ms: float) -> float:
        return delta_ms / FRAME_MS if self.settings.variable_step else 1.0

    def _tick(self, delta_ms: float) -> None:
        step = self._step(delta_ms)
        if self.settings.adaptive_quality:
            self._monitor_frame_rate()

        self.spawner.tick(delta_ms, self.enemy_missiles)

        if self.control_mode == "arrows":
            self._update_player_missile(step)
        else:
            self.interceptors.for_each(lambda interceptor: interceptor.update(step))
        self.enemy_missiles.for_each(lambda missile: missile.update(step))
        self._update_explosions(step, delta_ms)

        for intercept in resolve_interceptors(self.enemy_missiles, self.interceptors, self.settings.hit_radius):
            self._register_intercept(intercept)
        intercept = resolve_player_missile(self.enemy_missiles, self.player_missile, self.settings.hit_radius)
        if intercept is not None:
            self.player_missile = None
            self._register_intercept(intercept)
        if self.state is not GameState.PLAYING:
            return

        for interceptor in spent_interceptors(
            self.interceptors,
            self.settings.arrival_radius,
            self.settings.width,
            self.settings.height,
        ):
            self._explode(interceptor.position, ExplosionColor.MISS)

        for missile in ground_impacts(self.enemy_missiles, self.settings.ground_threshold):
            if self.state is GameState.PLAYING:
                self._register_hit(missile)
            else:
                self._explode(missile.position, ExplosionColor.HIT)

        self._check_terminal()

    def _update_player_missile(self, step: float) -> None:
        if self.player_missile is None:
            self.player_missile = PlayerMissile(
                self.launch_pad,
                self.settings.player_missile_speed,
                trail=make_trail(self.settings.player_trail_length),
            )
            self._play(LAUNCH_TONE)
        self.player_missile.steer(*self.directional_input)
        self.player_missile.update(step, self.settings.width, self.settings.height)

    def _update_explosions(self, step: float, delta_ms: float) -> None:
        elapsed_s = delta_ms / 1000.0
        friction = self.settings.particle_friction
        self.explosions.for_each(lambda group: group.update(step, elapsed_s, friction))
        self.explosions.compact(lambda group: group.alive)

    def _update_celebration(self, delta_ms: float) -> None:
        step = self._step(delta_ms)
        self._update_explosions(step, delta_ms)
        if self.celebration is None:
            self._finish_celebration()
            return
        self.celebration.update(step, delta_ms / 1000.0)
        if self.celebration.finished:
            self._finish_celebration()

    def _finish_celebration(self) -> None:
        if self._transition(GameState.VICTORY):
            self._play(*VICTORY_TONES)
            self._notify(self.hooks.celebration_complete)

    # -- outcomes --------------------------------------------------------

    def _register_intercept(self, intercept: Intercept) -> None:
        self._explode(intercept.point, ExplosionColor.INTERCEPT)
        self.intercepts += 1
        self.score += self.settings.intercept_award
        self._play(INTERCEPT_TONE)
        self._stats_changed()
        self._check_victory()

    def _register_hit(self, missile: EnemyMissile) -> None:
        self._explode(missile.position, ExplosionColor.HIT)
        self.hits += 1
        self._play(HIT_TONE)
        self._stats_changed()
        self._check_terminal()

    def _check_terminal(self) -> None:
        if self.state is not GameState.PLAYING:
            return
        if self.hits >= self.settings.max_hits:
            if self._transition(GameState.GAME_OVER):
                self._play(GAME_OVER_TONE)
            return
        self._check_victory()

    def _check_victory(self) -> None:
        if self.state is not GameState.PLAYING or self.intercepts < self.settings.target_intercepts:
            return
        if self.settings.celebration:
            self.enemy_missiles.clear()
            self.interceptors.clear()
            self.player_missile = None
            self.celebration = CelebrationAnimation(self.settings.width, self.settings.height, rng=self.rng)
            self._transition(GameState.SPECIAL_ANIMATION)
        elif self._transition(GameState.VICTORY):
            self._play(*VICTORY_TONES)

    def _explode(self, point: pygame.Vector2, color: ExplosionColor) -> ExplosionParticleGroup:
        group = ExplosionParticleGroup.burst(
            point,
            color,
            self.settings.explosion_particles,
            self.settings.particle_speed_range,
            self.rng,
        )
        self.explosions.spawn(group)
        return group

    # -- adaptive quality ------------------------------------------------

    def _monitor_frame_rate(self) -> None:
        self._fps_frames += 1
        if self.clock_ms - self._fps_window_start <= 1000.0:
            return
        self.fps = self._fps_frames
        self._fps_frames = 0
        self._fps_window_start = self.clock_ms
        if self.fps < self.settings.target_fps * QUALITY_FACTOR:
            self.reduce_quality()

    def reduce_quality(self) -> None:
        enemy_floor, interceptor_floor, explosion_floor = QUALITY_FLOORS
        for pool, floor in (
            (self.enemy_missiles, enemy_floor),
            (self.interceptors, interceptor_floor),
            (self.explosions, explosion_floor),
        ):
            pool.resize(max(floor, int(pool.capacity * QUALITY_FACTOR)))
        for group in self.explosions:
            group.thin(QUALITY_MAX_PARTICLES)
        logger.info(
            "frame rate %d below target, limits now %d/%d/%d",
            self.fps,
            self.enemy_missiles.capacity,
            self.interceptors.capacity,
            self.explosions.capacity,
        )

    # -- collaborators ---------------------------------------------------

    def _play(self, *tones: Tone) -> None:
        for tone in tones:
            self._notify(self.hooks.play_tone, *tone)

    def _stats_changed(self) -> None:
        self._notify(self.hooks.stats_changed, self.stats)

    @staticmethod
    def _notify(callback: Callable, *args) -> None:
        try:
            callback(*args)
        except Exception:
            logger.debug("collaborator %r failed", callback, exc_info=True)
