from importlib.util import find_spec
import logging
import math
import random
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

if find_spec("pygame") is None:
    sys.stderr.write(
        "Pygame is required to run Sky Shield.\n"
        "Install dependencies with 'pip install -e .' and try again.\n"
    )
    sys.exit(1)

import pygame

from audio import SAMPLE_RATE, ToneSynth
from entities import ExplosionParticleGroup
from session import GameSession, GameState, SessionHooks, Stats
from settings import GameSettings, parse_args, settings_from_args, setup_logging

pygame.mixer.pre_init(SAMPLE_RATE, 8, 1, 256)

logger = logging.getLogger(__name__)

FPS = 60

ASSET_FILES = {
    "interceptor": "interceptor.png",
    "enemy": "enemy.png",
    "launcher": "launcher.png",
    "background": "background.png",
}

BACKGROUND_COLOR = (10, 10, 46)
BUILDING_COLOR = (26, 26, 46)
WINDOW_COLORS = ((255, 255, 0), (255, 165, 0))
ENEMY_COLOR = (255, 68, 68)
INTERCEPTOR_COLOR = (68, 255, 68)
LAUNCHER_COLOR = (74, 144, 226)
LAUNCHER_BARREL_COLOR = (53, 122, 189)
UI_TEXT_COLOR = (210, 220, 220)
WARNING_TEXT_COLOR = (255, 100, 100)
SUCCESS_TEXT_COLOR = (120, 220, 120)
CELEBRATION_COLOR = (255, 215, 80)

SPRITE_SIZES = {
    "enemy": (35, 70),
    "interceptor": (35, 70),
    "player": (50, 100),
}


def lerp_color(color_a: Tuple[int, int, int], color_b: Tuple[int, int, int], t: float) -> Tuple[int, int, int]:
    t = max(0.0, min(1.0, t))
    return tuple(int(a + (b - a) * t) for a, b in zip(color_a, color_b))


@dataclass
class Star:
    x: float
    y: float
    size: float
    twinkle: float


@dataclass
class Building:
    rect: pygame.Rect
    lights: List[Tuple[int, int, Tuple[int, int, int]]]


def generate_stars(width: int, height: int, count: int, rng: random.Random) -> List[Star]:
    return [
        Star(rng.uniform(0, width), rng.uniform(0, height * 0.7), rng.uniform(1, 3), rng.uniform(0, 100))
        for _ in range(count)
    ]


def generate_skyline(width: int, height: int, count: int, rng: random.Random) -> List[Building]:
    buildings = []
    building_width = width / count
    for i in range(count):
        building_height = rng.uniform(20, 80)
        rect = pygame.Rect(int(i * building_width), int(height - building_height), int(building_width - 2), int(building_height))
        lights = []
        for row in range(int(building_height // 15)):
            for col in range(int((building_width - 2) // 10)):
                if rng.random() > 0.4:
                    color = WINDOW_COLORS[0] if rng.random() > 0.8 else WINDOW_COLORS[1]
                    lights.append((col * 10 + 3, row * 15 + 5, color))
        buildings.append(Building(rect, lights))
    return buildings


class SkyShieldGame:
    def __init__(self, settings: GameSettings, assets_dir: Path, seed: Optional[int] = None) -> None:
        pygame.init()
        pygame.display.set_caption("Sky Shield")
        self.settings = settings
        self.assets_dir = assets_dir
        self.screen = pygame.display.set_mode((settings.width, settings.height))
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("consolas", 20)
        self.big_font = pygame.font.SysFont("consolas", 40, bold=True)
        self.title_font = pygame.font.SysFont("consolas", 56, bold=True)
        self.synth = ToneSynth()
        self.rng = random.Random(seed)
        self.images: Dict[str, pygame.Surface] = {}
        self.hud_stats = Stats(0, 0, 0)
        self.share_ready = False
        self.elapsed = 0.0

        hooks = SessionHooks(
            play_tone=self.synth.play,
            stats_changed=self.on_stats_changed,
            state_changed=self.on_state_changed,
            celebration_complete=self.on_celebration_complete,
        )
        self.session = GameSession(settings, hooks, self.rng, expected_assets=len(ASSET_FILES))
        self.stars = generate_stars(settings.width, settings.height, 50, self.rng)
        self.skyline = generate_skyline(settings.width, settings.height, 15, self.rng)
        self.load_assets()

    # -- collaborators ---------------------------------------------------

    def on_stats_changed(self, stats: Stats) -> None:
        self.hud_stats = stats

    def on_state_changed(self, old_state: GameState, new_state: GameState) -> None:
        if new_state is GameState.PLAYING and old_state is GameState.MENU:
            self.share_ready = False

    def on_celebration_complete(self) -> None:
        self.share_ready = True

    # -- assets ----------------------------------------------------------

    def load_assets(self) -> None:
        for name, filename in ASSET_FILES.items():
            path = self.assets_dir / filename
            try:
                self.images[name] = pygame.image.load(str(path)).convert_alpha()
            except (pygame.error, FileNotFoundError) as exc:
                logger.debug("could not load %s: %s", path, exc)
                self.session.asset_settled(name, ok=False)
            else:
                self.session.asset_settled(name, ok=True)
            self.draw_loading()
        if "background" in self.images:
            self.images["background"] = pygame.transform.smoothscale(
                self.images["background"], (self.settings.width, self.settings.height)
            )

    def draw_loading(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                pygame.quit()
                sys.exit()
        self.screen.fill(BACKGROUND_COLOR)
        progress = self.session.assets_settled / max(1, self.session.assets_expected)
        text = self.font.render(f"Loading assets... {round(progress * 100)}%", True, UI_TEXT_COLOR)
        self.screen.blit(text, text.get_rect(center=(self.settings.width // 2, self.settings.height // 2)))
        pygame.display.flip()

    # -- input -----------------------------------------------------------

    def handle_input(self) -> None:
        session = self.session
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                pygame.quit()
                sys.exit()
            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    pygame.quit()
                    sys.exit()
                if event.key in (pygame.K_SPACE, pygame.K_RETURN):
                    self.advance_menu()
                if event.key == pygame.K_p:
                    session.toggle_pause()
                if event.key == pygame.K_TAB:
                    session.set_control_mode("arrows" if session.control_mode == "touch" else "touch")
            if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                if session.state is GameState.PLAYING:
                    session.tap(*event.pos)
                else:
                    self.advance_menu()

        if session.control_mode == "arrows":
            keys = pygame.key.get_pressed()
            session.set_directional_input(keys[pygame.K_UP], keys[pygame.K_DOWN], keys[pygame.K_LEFT], keys[pygame.K_RIGHT])

    def advance_menu(self) -> None:
        state = self.session.state
        if state is GameState.MENU:
            self.session.start()
        elif state in (GameState.GAME_OVER, GameState.VICTORY):
            self.session.restart()
        elif state is GameState.PAUSED:
            self.session.toggle_pause()

    # -- drawing ---------------------------------------------------------

    def draw_background(self) -> None:
        background = self.images.get("background")
        if background is not None:
            self.screen.blit(background, (0, 0))
            return
        self.screen.fill(BACKGROUND_COLOR)
        for star in self.stars:
            brightness = 0.5 + 0.5 * math.sin(star.twinkle + self.elapsed * 2)
            color = lerp_color(BACKGROUND_COLOR, (255, 255, 255), brightness)
            pygame.draw.circle(self.screen, color, (star.x, star.y), star.size)
        for building in self.skyline:
            pygame.draw.rect(self.screen, BUILDING_COLOR, building.rect)
            for x, y, color in building.lights:
                pygame.draw.rect(self.screen, color, (building.rect.x + x, building.rect.y + y, 4, 6))

    def draw_trail(self, points: Sequence[pygame.Vector2], color: Tuple[int, int, int], width: int) -> None:
        if len(points) < 2:
            return
        count = len(points)
        for index in range(1, count):
            faded = lerp_color(BACKGROUND_COLOR, color, index / count)
            pygame.draw.line(self.screen, faded, points[index - 1], points[index], width)

    def draw_sprite(self, name: str, size_key: str, position: pygame.Vector2, heading: float, fallback: Tuple[int, int, int], radius: int) -> None:
        image = self.images.get(name)
        if image is None:
            pygame.draw.circle(self.screen, fallback, position, radius)
            return
        sprite = pygame.transform.rotate(pygame.transform.smoothscale(image, SPRITE_SIZES[size_key]), -heading)
        self.screen.blit(sprite, sprite.get_rect(center=position))

    def draw_explosions(self, explosions: Iterable[ExplosionParticleGroup]) -> None:
        for explosion in explosions:
            color = lerp_color(BACKGROUND_COLOR, explosion.color.rgb, explosion.alpha)
            for particle in explosion.particles:
                pygame.draw.circle(self.screen, color, particle.position, 2)

    def draw_launcher(self) -> None:
        pad_x, pad_y = self.settings.launch_pad
        launcher = self.images.get("launcher")
        if launcher is not None:
            image = pygame.transform.smoothscale(launcher, (150, 90))
            self.screen.blit(image, (pad_x - 75, pad_y))
            return
        pygame.draw.rect(self.screen, LAUNCHER_COLOR, (pad_x - 15, pad_y, 30, 20))
        pygame.draw.rect(self.screen, LAUNCHER_BARREL_COLOR, (pad_x - 3, pad_y - 10, 6, 10))

    def draw_entities(self) -> None:
        session = self.session
        for missile in session.enemy_missiles:
            self.draw_trail(list(missile.trail), ENEMY_COLOR, 4)
            self.draw_sprite("enemy", "enemy", missile.position, missile.heading, ENEMY_COLOR, 15)

        for interceptor in session.interceptors:
            self.draw_trail(list(interceptor.trail), INTERCEPTOR_COLOR, 4)
            self.draw_sprite("interceptor", "interceptor", interceptor.position, interceptor.heading, INTERCEPTOR_COLOR, 8)

        player = session.player_missile
        if player is not None:
            self.draw_trail(list(player.trail), INTERCEPTOR_COLOR, 6)
            self.draw_sprite("interceptor", "player", player.position, player.heading, INTERCEPTOR_COLOR, 10)

        self.draw_explosions(session.explosions)
        self.draw_launcher()

    def draw_celebration(self) -> None:
        celebration = self.session.celebration
        if celebration is None:
            return
        for spark in celebration.sparks:
            color = lerp_color(BACKGROUND_COLOR, spark.color, spark.life)
            pygame.draw.circle(self.screen, color, spark.position, 2)
        pygame.draw.circle(self.screen, CELEBRATION_COLOR, celebration.position, 14)
        if celebration.text_alpha > 0:
            text = self.big_font.render(celebration.text, True, CELEBRATION_COLOR)
            text.set_alpha(int(255 * celebration.text_alpha))
            self.screen.blit(text, text.get_rect(center=(self.settings.width // 2, self.settings.height // 2)))

    def draw_ui(self) -> None:
        stats = self.hud_stats
        info_lines = [
            f"Score: {stats.score}",
            f"Hits: {stats.hits}/{self.settings.max_hits}",
            f"Intercepts: {stats.intercepts}/{self.settings.target_intercepts}",
            f"Controls: {self.session.control_mode} (Tab to switch)",
        ]
        for i, line in enumerate(info_lines):
            text_surface = self.font.render(line, True, UI_TEXT_COLOR)
            self.screen.blit(text_surface, (24, 24 + i * 28))

        if self.settings.adaptive_quality and self.session.fps < self.settings.target_fps * 0.8:
            fps_text = self.font.render(f"FPS: {self.session.fps}", True, WARNING_TEXT_COLOR)
            self.screen.blit(fps_text, (self.settings.width - 120, 24))

        state = self.session.state
        if state is GameState.MENU:
            prompt = "Click to launch interceptors" if self.session.control_mode == "touch" else "Steer your missile with the arrow keys"
            self.draw_message("Sky Shield", [prompt, "Protect the cities from incoming missiles", "Click or press Space to start"], SUCCESS_TEXT_COLOR)
        elif state is GameState.PAUSED:
            self.draw_message("Game Paused", ["Press P or Space to resume"], UI_TEXT_COLOR)
        elif state is GameState.GAME_OVER:
            self.draw_message(
                "Game Over",
                ["Your cities were destroyed!", f"Score: {stats.score}  Intercepts: {stats.intercepts}", "Press Space to try again"],
                WARNING_TEXT_COLOR,
            )
        elif state is GameState.VICTORY:
            lines = ["You defended the cities!", f"Score: {stats.score}  Intercepts: {stats.intercepts}"]
            if self.share_ready:
                lines.append(f"I scored {stats.score} defending the skyline in Sky Shield!")
            lines.append("Press Space to play again")
            self.draw_message("Victory!", lines, SUCCESS_TEXT_COLOR)

    def draw_message(self, title: str, lines: List[str], title_color: Tuple[int, int, int]) -> None:
        overlay = pygame.Surface((self.settings.width, self.settings.height), pygame.SRCALPHA)
        overlay.fill((0, 0, 0, 160))
        self.screen.blit(overlay, (0, 0))
        center_x = self.settings.width // 2
        center_y = self.settings.height // 2 - 20 * len(lines)
        title_surface = self.title_font.render(title, True, title_color)
        self.screen.blit(title_surface, title_surface.get_rect(center=(center_x, center_y - 40)))
        for i, line in enumerate(lines):
            text_surface = self.font.render(line, True, UI_TEXT_COLOR)
            self.screen.blit(text_surface, text_surface.get_rect(center=(center_x, center_y + 20 + i * 32)))

    def draw(self) -> None:
        self.draw_background()
        self.draw_entities()
        self.draw_celebration()
        self.draw_ui()
        pygame.display.flip()

    def run(self) -> None:
        while True:
            delta_ms = self.clock.tick(FPS)
            self.elapsed += delta_ms / 1000.0
            self.handle_input()
            self.session.run_frame(delta_ms)
            self.draw()


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_level)
    try:
        settings = settings_from_args(args)
    except ValueError as exc:
        sys.stderr.write(f"Invalid settings: {exc}\n")
        sys.exit(2)
    game = SkyShieldGame(settings, args.assets, seed=args.seed)
    game.run()


if __name__ == "__main__":
    main()
