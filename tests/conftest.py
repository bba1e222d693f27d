import random
from dataclasses import replace
from typing import List, Tuple

import pytest

from entities import EnemyMissile
from session import GameSession, GameState, SessionHooks
from settings import GameSettings

# 800x600 viewport: launch pad at (400, 500), ground threshold at 520
QUIET = GameSettings(width=800, height=600, spawn_interval_ms=1e9, spawn_interval_floor_ms=1e9)


class Recorder:
    def __init__(self) -> None:
        self.tones: List[Tuple[float, float, str]] = []
        self.stats = []
        self.transitions: List[Tuple[GameState, GameState]] = []
        self.celebrations = 0

    def hooks(self) -> SessionHooks:
        return SessionHooks(
            play_tone=lambda *tone: self.tones.append(tone),
            stats_changed=self.stats.append,
            state_changed=lambda old, new: self.transitions.append((old, new)),
            celebration_complete=self._celebrated,
        )

    def _celebrated(self) -> None:
        self.celebrations += 1

    def entered(self, state: GameState) -> int:
        return sum(1 for _, new in self.transitions if new is state)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def make_session(recorder):
    def factory(start: bool = True, **overrides) -> GameSession:
        session = GameSession(replace(QUIET, **overrides), recorder.hooks(), random.Random(1234))
        if start:
            session.start()
        return session

    return factory


def intercept_once(session: GameSession) -> None:
    pad_x, pad_y = session.settings.launch_pad
    session.enemy_missiles.spawn(EnemyMissile.launch((pad_x, pad_y - 30), (pad_x, session.settings.height), 1.0))
    session.launch_interceptor(pad_x, pad_y - 30)
    session.run_frame(16)


def ground_hit_once(session: GameSession) -> None:
    threshold = session.settings.ground_threshold
    session.enemy_missiles.spawn(EnemyMissile.launch((100, threshold - 1), (100, session.settings.height), 1.5))
    session.run_frame(16)
