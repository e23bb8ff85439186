"""Boundary collision policy for the arena.

A bound is crossed when the position reaches or passes it. The velocity is
then reflected on the axis of that bound and both components are scaled by
the projectile's elasticity. Vertical bounds are checked first and at most
one bound is resolved per event, so a corner hit is handled as a floor or
ceiling hit.

Position is never clamped: a fast object can overshoot a bound between ticks.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from . import constants
from .kinematics import Projectile
from .reactive import batch, untracked, watch

logger = logging.getLogger(__name__)

VERTICAL = "vertical"      # floor or ceiling
HORIZONTAL = "horizontal"  # left or right wall


@dataclass(frozen=True)
class Bounds:
    floor: float = constants.FLOOR
    ceiling: float = constants.CEILING
    left: float = constants.LEFT_WALL
    right: float = constants.RIGHT_WALL

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.ceiling - self.floor


def resolve_collision(projectile: Projectile, bounds: Bounds) -> Optional[str]:
    """Reflect the velocity if the projectile is on or past a bound.

    Returns VERTICAL, HORIZONTAL or None when no bound was crossed.
    """
    with untracked():
        x, y = projectile.pos.x, projectile.pos.y
        e = projectile.collision_elasticity
        velocity = projectile.velocity

        if y <= bounds.floor or y >= bounds.ceiling:
            with batch():
                velocity.x = e * velocity.x
                velocity.y = e * -velocity.y
            return VERTICAL

        if x <= bounds.left or x >= bounds.right:
            with batch():
                velocity.x = e * -velocity.x
                velocity.y = e * velocity.y
            return HORIZONTAL

    return None


class BoundaryWatcher:
    """Resolves collisions every time the projectile's position changes.

    The check runs after each committed position update, so with batched
    ticks it runs once per `advance`.
    """

    def __init__(
        self,
        projectile: Projectile,
        bounds: Optional[Bounds] = None,
        on_bounce: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.projectile = projectile
        self.bounds = bounds or Bounds()
        self.on_bounce = on_bounce
        self.bounces = 0
        self._effect = watch(
            lambda: (projectile.pos.x, projectile.pos.y),
            self._on_move,
            defer=True,
        )

    def _on_move(self, _position) -> None:
        kind = resolve_collision(self.projectile, self.bounds)
        if kind is None:
            return
        self.bounces += 1
        logger.debug(f"Bounce #{self.bounces} ({kind}) at {self.projectile.pos}")
        if self.on_bounce is not None:
            self.on_bounce(kind)

    def dispose(self) -> None:
        self._effect.dispose()

    def __enter__(self) -> "BoundaryWatcher":
        return self

    def __exit__(self, *_exc) -> None:
        self.dispose()
