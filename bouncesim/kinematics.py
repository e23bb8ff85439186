"""Kinematic state, motion integration and trajectory prediction.

Every scalar of position and velocity is its own `Signal`, so observers can
watch exactly the components they draw or check. `Projectile.advance` writes
all components inside one batch: watchers see either the state before the
tick or after it.

Predictions are instantaneous: they start from the *current* velocity and
height, not from the launch state, so after a bounce they describe the
post-bounce arc.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from pymunk import Vec2d

from . import constants
from .reactive import Signal, batch, untracked


class _ReactiveVector:
    """Two independently observable components."""

    def __init__(self, x: float, y: float) -> None:
        self._x = Signal(x)
        self._y = Signal(y)

    @property
    def x(self) -> float:
        return self._x.get()

    @x.setter
    def x(self, value: float) -> None:
        self._x.set(value)

    @property
    def y(self) -> float:
        return self._y.get()

    @y.setter
    def y(self, value: float) -> None:
        self._y.set(value)

    @property
    def vector(self) -> Vec2d:
        return Vec2d(self.x, self.y)

    def snapshot(self) -> Vec2d:
        # Query without subscribing the running effect
        return Vec2d(self._x.peek(), self._y.peek())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._x.peek()!r}, {self._y.peek()!r})"


class Point(_ReactiveVector):
    """Position in metres, y measured up from the floor."""


class Velocity(_ReactiveVector):
    """Velocity in metres per second."""

    @property
    def magnitude(self) -> float:
        return self.vector.length

    @property
    def angle(self) -> float:
        """Elevation angle atan(y / x) in radians.

        A vertical velocity (x == 0) gives +pi/2 or -pi/2 by the sign of y,
        and 0.0 when the velocity is zero.
        """
        x, y = self.x, self.y
        if x == 0:
            if y == 0:
                return 0.0
            return math.copysign(math.pi / 2, y)
        return math.atan(y / x)


@dataclass
class ProjectileOptions:
    # Reserved for drag modelling; the integrator ignores both
    mass: float = constants.MASS
    drag_coefficient: float = 0.0


class Projectile:
    """A point mass under constant gravity."""

    def __init__(
        self,
        pos: Point,
        velocity: Velocity,
        opts: Optional[ProjectileOptions] = None,
        collision_elasticity: Optional[float] = None,
    ) -> None:
        self.pos = pos
        self.velocity = velocity
        self.opts = opts
        # Coefficient of restitution, read on every collision
        self.collision_elasticity = (
            constants.DEFAULT_ELASTICITY if collision_elasticity is None else collision_elasticity
        )

    @classmethod
    def launch(
        cls,
        position=constants.LAUNCH_POSITION,
        velocity=constants.LAUNCH_VELOCITY,
        opts: Optional[ProjectileOptions] = None,
        collision_elasticity: Optional[float] = None,
    ) -> "Projectile":
        return cls(Point(*position), Velocity(*velocity), opts, collision_elasticity)

    def predict_vertical(self) -> float:
        """Apex height reachable from the current height and vertical velocity."""
        with untracked():
            u = self.velocity.y
            s = u ** 2 / (2 * constants.G)
            return self.pos.y + s

    def predict_horizontal(self) -> float:
        """Range assuming a symmetric rise and fall around `predict_vertical()`.

        Below the floor the fall height is negative; the fall time is taken
        as zero there.
        """
        with untracked():
            s = self.predict_vertical()
            t = math.sqrt(max(2 * s / constants.G, 0.0))
            total = 2 * t
            return total * self.velocity.x

    def predicted(self) -> Vec2d:
        """The predicted distances the projectile will travel."""
        return Vec2d(self.predict_horizontal(), self.predict_vertical())

    def advance(self, dt: float) -> None:
        """Advance the projectile by `dt` seconds.

        Horizontal velocity is constant; gravity only changes velocity.y.
        """
        with untracked(), batch():
            self.pos.x += self.velocity.x * dt
            dy = self.velocity.y * dt + 0.5 * -constants.G * dt ** 2
            self.pos.y += dy
            self.velocity.y += -(constants.G * dt)

    def kinetic_energy(self) -> float:
        speed = self.velocity.snapshot().length
        return 0.5 * constants.MASS * speed ** 2

    def potential_energy(self) -> float:
        return constants.MASS * constants.G * self.pos.snapshot().y
