import argparse
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional, Sequence, Tuple

# Nominal frame length; per-tick velocities are expressed against it
FRAME_MS = 1000.0 / 60.0

CONTROL_MODES = ("touch", "arrows")


@dataclass(frozen=True)
class GameSettings:
    width: int = 960
    height: int = 720
    ground_margin: float = 80.0
    launch_pad_offset: float = 100.0

    max_enemy_missiles: int = 12
    max_interceptors: int = 10
    max_explosions: int = 8

    interceptor_speed: float = 6.0
    player_missile_speed: float = 5.0
    enemy_speed_range: Tuple[float, float] = (1.0, 2.5)

    spawn_interval_ms: float = 2000.0
    spawn_interval_floor_ms: float = 800.0
    spawn_interval_step_ms: float = 50.0

    hit_radius: float = 35.0
    arrival_radius: float = 20.0

    enemy_trail_length: int = 10
    interceptor_trail_length: int = 8
    player_trail_length: int = 12

    explosion_particles: int = 15
    particle_friction: float = 0.98
    particle_speed_range: Tuple[float, float] = (1.0, 3.0)

    touch_cooldown_ms: float = 200.0
    max_hits: int = 5
    target_intercepts: int = 20
    intercept_award: int = 100

    control_mode: str = "touch"
    single_interceptor: bool = False
    celebration: bool = False
    variable_step: bool = False
    adaptive_quality: bool = False
    target_fps: int = 60

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"viewport must be positive, got {self.width}x{self.height}")
        if self.ground_margin >= self.height:
            raise ValueError("ground margin must leave part of the viewport above ground")
        for name in ("max_enemy_missiles", "max_interceptors", "max_explosions", "explosion_particles"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.control_mode not in CONTROL_MODES:
            raise ValueError(f"unknown control mode {self.control_mode!r}")
        low, high = self.enemy_speed_range
        if low <= 0 or high < low:
            raise ValueError(f"invalid enemy speed range {self.enemy_speed_range}")
        if self.spawn_interval_floor_ms > self.spawn_interval_ms:
            raise ValueError("spawn interval floor exceeds the starting interval")

    @property
    def ground_threshold(self) -> float:
        return self.height - self.ground_margin

    @property
    def launch_pad(self) -> Tuple[float, float]:
        return self.width / 2, self.height - self.launch_pad_offset


DESKTOP = GameSettings()

MOBILE = GameSettings(
    max_enemy_missiles=8,
    max_interceptors=6,
    max_explosions=5,
    interceptor_speed=5.0,
    player_missile_speed=4.0,
    spawn_interval_ms=2500.0,
    spawn_interval_floor_ms=1500.0,
    enemy_trail_length=5,
    interceptor_trail_length=4,
    player_trail_length=6,
    explosion_particles=8,
    target_fps=45,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sky Shield: intercept incoming missiles before they reach the city.")
    parser.add_argument("--width", type=int, default=None, help="window width in pixels (default 960)")
    parser.add_argument("--height", type=int, default=None, help="window height in pixels (default 720)")
    parser.add_argument(
        "--mobile",
        action="store_true",
        help="use the lighter mobile preset (fewer entities, slower spawns)",
    )
    parser.add_argument(
        "--controls",
        choices=CONTROL_MODES,
        default=None,
        help="touch: click to launch interceptors; arrows: steer a single missile",
    )
    parser.add_argument(
        "--single-interceptor",
        action="store_true",
        help="allow only one interceptor in flight at a time",
    )
    parser.add_argument(
        "--celebration",
        action="store_true",
        help="play the celebration cut-scene before the victory screen",
    )
    parser.add_argument(
        "--variable-step",
        action="store_true",
        help="scale movement by elapsed frame time instead of a fixed step per frame",
    )
    parser.add_argument(
        "--adaptive-quality",
        action="store_true",
        help="shrink entity limits when the frame rate drops",
    )
    parser.add_argument("--seed", type=int, default=None, help="random seed for reproducible spawns")
    parser.add_argument("--assets", type=Path, default=Path("assets"), help="directory holding optional sprite images")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="logging verbosity (default WARNING)",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> GameSettings:
    base = MOBILE if args.mobile else DESKTOP
    overrides = {
        "single_interceptor": args.single_interceptor,
        "celebration": args.celebration,
        "variable_step": args.variable_step,
        "adaptive_quality": args.adaptive_quality,
    }
    if args.width is not None:
        overrides["width"] = args.width
    if args.height is not None:
        overrides["height"] = args.height
    if args.controls is not None:
        overrides["control_mode"] = args.controls
    elif args.mobile:
        overrides["control_mode"] = "touch"
    return replace(base, **overrides)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def setup_logging(level: str = "WARNING") -> logging.Logger:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=getattr(logging, level.upper(), logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            handlers=[logging.StreamHandler(sys.stderr)],
        )
    else:
        root.setLevel(level.upper())
    return root
