"""Single simulation runner (headless or interactive).

The interactive path opens a pygame window, advances the projectile on a
periodic timer event and redraws whenever the position changes. The headless
path runs the same tick loop as fast as possible for a fixed duration and
returns the recorded physics log.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import pygame

from . import constants
from .collision import Bounds, BoundaryWatcher
from .kinematics import Projectile
from .prefs import Preferences
from .reactive import batch, watch

logger = logging.getLogger(__name__)

TICK_EVENT = pygame.USEREVENT + 1

BACKGROUND = (25, 25, 25)
BALL_COLOR = (230, 230, 230)
BALL_OUTLINE = (120, 120, 120)


@dataclass
class SimulationResult:
    """Container for the output of a single simulation run."""

    physics_log: List[Dict[str, Any]]
    bounces: int
    predicted: Tuple[float, float]
    elapsed: float
    bounds: Bounds


def create_projectile(
    position: Sequence[float],
    velocity: Sequence[float],
    elasticity: Optional[float],
) -> Projectile:
    return Projectile.launch(tuple(position), tuple(velocity), collision_elasticity=elasticity)


def compute_scale(
    size: Tuple[int, int],
    h_dist: float,
    v_dist: float,
    radius: float = constants.RADIUS,
) -> Tuple[float, float]:
    # Pixels per metre so the predicted arc fits inside the canvas
    width, height = size
    scale_x = (width - 4 * radius) / h_dist if h_dist > 0 else 1.0
    scale_y = (height - 2 * radius) / v_dist if v_dist > 0 else 1.0
    return scale_x, scale_y


def world_to_screen(
    x: float,
    y: float,
    scale: Tuple[float, float],
    height: int,
    radius: float = constants.RADIUS,
) -> Tuple[int, int]:
    # Screen y grows downward; keep the ball's edge on the floor line.
    # The horizontal radius offset is scaled along with x.
    sx = (x + radius) * scale[0]
    sy = height - y * scale[1] - radius
    return int(sx), int(sy)


def log_frame(
    physics_log: List[Dict[str, Any]],
    time_elapsed: float,
    projectile: Projectile,
    bounces: int,
) -> None:
    # Capture kinematics and energies for the current tick
    x, y = projectile.pos.snapshot()
    v = projectile.velocity.snapshot()
    ke = projectile.kinetic_energy()
    pe = projectile.potential_energy()

    physics_log.append({
        "t": time_elapsed,
        "x": x,
        "y": y,
        "vx": v.x,
        "vy": v.y,
        "speed": v.length,
        "KE": ke,
        "PE": pe,
        "TE": ke + pe,
        "bounces": bounces,
    })


@contextmanager
def periodic_timer(event_type: int, interval: float) -> Iterator[None]:
    """Post `event_type` every `interval` seconds until the block exits."""
    pygame.time.set_timer(event_type, max(1, round(interval * 1000)))
    try:
        yield
    finally:
        pygame.time.set_timer(event_type, 0)


def run_sim(
    initial_position: Sequence[float] = constants.LAUNCH_POSITION,
    initial_velocity: Sequence[float] = constants.LAUNCH_VELOCITY,
    elasticity: Optional[float] = None,
    bounds: Optional[Bounds] = None,
    display: bool = True,
    duration: float = 30.0,
    prefs: Optional[Preferences] = None,
    window_size: Tuple[int, int] = constants.WINDOW_SIZE,
) -> SimulationResult:
    """Run a single simulation.

    Headless runs stop after `duration` simulated seconds. Interactive runs
    continue until the window is closed; `duration` is ignored there.

    When `elasticity` is None it comes from `prefs` (interactive runs load
    the user's preferences if none are given), or defaults to lossless.
    """
    bounds = bounds or Bounds()
    if display and prefs is None:
        prefs = Preferences()
    if elasticity is None:
        elasticity = prefs.elasticity if prefs is not None else constants.DEFAULT_ELASTICITY

    projectile = create_projectile(initial_position, initial_velocity, elasticity)
    predicted = tuple(projectile.predicted())
    logger.info(
        f"Launch from {tuple(initial_position)} at {tuple(initial_velocity)} m/s, "
        f"e={elasticity:.2f}, predicted range={predicted[0]:.2f} m, apex={predicted[1]:.2f} m"
    )

    physics_log: List[Dict[str, Any]] = []
    time_elapsed = 0.0
    watcher = BoundaryWatcher(projectile, bounds)

    def step() -> None:
        # One fixed tick; collisions resolve when the batched position commits
        nonlocal time_elapsed
        projectile.advance(constants.DT)
        time_elapsed += constants.DT
        log_frame(physics_log, time_elapsed, projectile, watcher.bounces)

    if not display:
        # Headless fast path for batch runs and tests
        try:
            for _ in range(round(duration / constants.DT)):
                step()
        finally:
            watcher.dispose()
        logger.info(f"Finished {len(physics_log)} ticks with {watcher.bounces} bounces")
        return SimulationResult(physics_log, watcher.bounces, predicted, time_elapsed, bounds)

    pygame.init()
    WIDTH, HEIGHT = window_size
    screen = pygame.display.set_mode((WIDTH, HEIGHT))
    pygame.display.set_caption("Projectile Simulation")
    clock = pygame.time.Clock()
    font = pygame.font.SysFont(None, 28)
    # Drawing layer kept between frames so a persisted path accumulates
    canvas = pygame.Surface((WIDTH, HEIGHT))
    canvas.fill(BACKGROUND)
    persist_button = pygame.Rect(WIDTH - 200, 20, 180, 40)

    scale = compute_scale((WIDTH, HEIGHT), predicted[0], predicted[1])
    persist = prefs.persist_path
    elasticity_percent = round(projectile.collision_elasticity * 100)

    def draw(position) -> None:
        x, y = position
        if not persist:
            canvas.fill(BACKGROUND)
        center = world_to_screen(x, y, scale, HEIGHT)
        pygame.draw.circle(canvas, BALL_COLOR, center, constants.RADIUS)
        pygame.draw.circle(canvas, BALL_OUTLINE, center, constants.RADIUS, 1)

    renderer = watch(lambda: (projectile.pos.x, projectile.pos.y), draw)

    def set_elasticity(percent: int) -> None:
        nonlocal elasticity_percent
        elasticity_percent = max(0, min(100, percent))
        projectile.collision_elasticity = elasticity_percent / 100
        prefs.elasticity_percent = elasticity_percent

    def toggle_persist() -> None:
        nonlocal persist
        persist = not persist
        prefs.persist_path = persist

    def restart() -> None:
        # Rewind to the launch state; the watcher is rebuilt so the reset
        # itself is not taken for a floor hit
        nonlocal watcher, time_elapsed
        watcher.dispose()
        canvas.fill(BACKGROUND)
        with batch():
            projectile.pos.x, projectile.pos.y = initial_position
            projectile.velocity.x, projectile.velocity.y = initial_velocity
        watcher = BoundaryWatcher(projectile, bounds)
        time_elapsed = 0.0
        physics_log.clear()
        logger.info("Simulation restarted")

    running = True
    try:
        with periodic_timer(TICK_EVENT, constants.DT):
            while running:
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == TICK_EVENT:
                        step()
                    elif event.type == pygame.KEYDOWN:
                        if event.key == pygame.K_ESCAPE:
                            running = False
                        elif event.key == pygame.K_LEFT:
                            set_elasticity(elasticity_percent - constants.ELASTICITY_STEP)
                        elif event.key == pygame.K_RIGHT:
                            set_elasticity(elasticity_percent + constants.ELASTICITY_STEP)
                        elif event.key == pygame.K_p:
                            toggle_persist()
                        elif event.key == pygame.K_r:
                            restart()
                    elif event.type == pygame.MOUSEBUTTONDOWN:
                        if persist_button.collidepoint(event.pos):
                            toggle_persist()

                screen.blit(canvas, (0, 0))

                # Overlay current state
                x, y = projectile.pos.snapshot()
                vx, vy = projectile.velocity.snapshot()
                overlay_lines = [
                    f"(x, y): ({x:.2f}, {y:.2f})",
                    f"vx: {vx:.2f}, vy: {vy:.2f}",
                    f"Collision Elasticity: {elasticity_percent}%",
                    f"predicted: x={predicted[0]:.2f} m, y={predicted[1]:.2f} m",
                    f"bounces: {watcher.bounces}",
                    f"t: {time_elapsed:.2f}s",
                    "LEFT/RIGHT: elasticity   P: persist path   R: restart",
                ]
                for i, line in enumerate(overlay_lines):
                    screen.blit(font.render(line, True, (255, 255, 255)), (10, 10 + 22 * i))

                button_color = (70, 180, 90) if persist else (70, 140, 220)
                pygame.draw.rect(screen, button_color, persist_button)
                screen.blit(font.render("PERSIST PATH", True, (255, 255, 255)), (persist_button.x + 18, persist_button.y + 10))

                pygame.display.flip()
                clock.tick(60)
    finally:
        renderer.dispose()
        watcher.dispose()
        prefs.flush()
        pygame.quit()

    return SimulationResult(physics_log, watcher.bounces, predicted, time_elapsed, bounds)
