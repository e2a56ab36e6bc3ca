"""
Game Entities
=============

Paddles and balls are physics bodies; obstacles and power-ups are simple
positioned shapes the orchestrator checks balls against.

Coordinates are entity centers in pixels, y growing downward.
"""

import math
from typing import List, Optional, TYPE_CHECKING

import numpy as np

from ..physics import PhysicsBody, Vector2D, Rect, Contact, check_circle_circle

import sys
sys.path.append('../..')
from config import Config

if TYPE_CHECKING:
    from .quantum import Ghost


PLAYER = 'player'
AI = 'ai'


class Paddle(PhysicsBody):
    """
    Input-driven paddle.

    `input` is the direction for the current tick (-1 up, 0 none, +1 down).
    With input the vertical velocity is set to +/- speed; without it the
    velocity decays by PADDLE_DECELERATION. The paddle never leaves the
    field vertically and never moves horizontally.
    """

    def __init__(self, x: float, y: float, side: str, config: Config):
        super().__init__(
            Vector2D(x, y),
            mass=config.PADDLE_MASS,
            restitution=config.ELASTICITY,
            drag=config.AIR_RESISTANCE,
            friction=config.FRICTION,
            max_velocity=config.MAX_VELOCITY,
            rotational_damping=config.ROTATIONAL_DAMPING,
        )
        self.side = side
        self.width = config.PADDLE_WIDTH
        self.height = config.PADDLE_HEIGHT
        self.speed = config.PADDLE_SPEED
        self.deceleration = config.PADDLE_DECELERATION
        self.boost_multiplier = config.PADDLE_BOOST_MULTIPLIER

        self.input = 0
        self.boost_active = False
        self.shield = False

        # Stats
        self.hits = 0
        self.perfect_hits = 0
        self.quantum_hits = 0
        self.total_distance = 0.0

    @property
    def bounds(self) -> Rect:
        return Rect.from_center(self.position, self.width, self.height)

    def update(self, dt: float, field_height: float) -> None:
        if self.input != 0:
            move_speed = self.speed * self.boost_multiplier if self.boost_active else self.speed
            self.velocity = Vector2D(0.0, self.input * move_speed)
            self.total_distance += abs(self.velocity.y * dt)
        else:
            self.velocity = Vector2D(0.0, self.velocity.y * self.deceleration)

        self.integrate(dt)

        half = self.height / 2
        if self.position.y < half:
            self.position = self.position.with_y(half)
            self.velocity = Vector2D(0.0, 0.0)
        elif self.position.y > field_height - half:
            self.position = self.position.with_y(field_height - half)
            self.velocity = Vector2D(0.0, 0.0)


class Ball(PhysicsBody):
    """
    Spinning ball.

    Spin bends the trajectory with a Magnus-style force perpendicular to
    the velocity. Speed is kept within [BALL_MIN_SPEED, BALL_MAX_SPEED]
    after every update.
    """

    _next_id = 0

    def __init__(self, position: Vector2D, config: Config, velocity: Optional[Vector2D] = None):
        super().__init__(
            position,
            mass=config.BALL_MASS,
            restitution=config.ELASTICITY,
            drag=config.AIR_RESISTANCE,
            friction=1.0,
            max_velocity=config.MAX_VELOCITY,
            rotational_damping=config.ROTATIONAL_DAMPING,
            velocity=velocity,
        )
        self.config = config
        self.ball_id = Ball._next_id
        Ball._next_id += 1

        self.radius = config.BALL_RADIUS
        self.is_active = True
        self.frozen = False
        self.affected_by_gravity = False
        self.last_hit_by: Optional[str] = None
        self.hit_count = 0

        self.ghosts: List['Ghost'] = []

    @property
    def in_superposition(self) -> bool:
        return bool(self.ghosts)

    @property
    def speed(self) -> float:
        return self.velocity.magnitude()

    def reset(self, center: Vector2D, direction: int, rng: np.random.Generator) -> None:
        """Serve from `center` at a random angle within +/-45 degrees."""
        angle = rng.uniform(-math.pi / 4, math.pi / 4)
        speed = self.config.BALL_INITIAL_SPEED
        self.position = center
        self.velocity = Vector2D(math.cos(angle) * speed * direction, math.sin(angle) * speed)
        self.force = Vector2D(0.0, 0.0)
        self.angular_velocity = 0.0
        self.rotation = 0.0
        self.torque = 0.0
        self.radius = self.config.BALL_RADIUS
        self.hit_count = 0
        self.last_hit_by = None
        self.is_active = True
        self.frozen = False
        self.affected_by_gravity = False
        self.ghosts = []

    def update(self, dt: float) -> None:
        if not self.is_active or self.frozen:
            return

        w = self.angular_velocity
        if abs(w) > 0.01:
            curve = self.config.BALL_SPIN_CURVE
            self.apply_force(Vector2D(-self.velocity.y * w * curve, self.velocity.x * w * curve))
        self.angular_velocity *= self.config.BALL_SPIN_DECAY

        if self.affected_by_gravity:
            self.apply_force(Vector2D(0.0, self.config.GRAVITY * self.mass))

        self.integrate(dt)
        self.clamp_speed()

    def clamp_speed(self) -> None:
        speed = self.velocity.magnitude()
        if speed > self.config.BALL_MAX_SPEED:
            self.velocity = self.velocity.normalize() * self.config.BALL_MAX_SPEED
        elif 0 < speed < self.config.BALL_MIN_SPEED:
            self.velocity = self.velocity.normalize() * self.config.BALL_MIN_SPEED

    def apply_paddle_hit(self, paddle: Paddle, contact: Contact) -> bool:
        """
        Speed-up and spin after bouncing off a paddle.

        Spin comes from the contact offset along the paddle face and from
        the paddle's own vertical motion.

        Returns:
            True for a perfect hit (ball close to the paddle center)
        """
        self.last_hit_by = paddle.side
        self.hit_count += 1

        new_speed = min(self.velocity.magnitude() + self.config.BALL_SPEED_INCREMENT,
                        self.config.BALL_MAX_SPEED)
        self.velocity = self.velocity.normalize() * new_speed

        self.angular_velocity += contact.offset.y * self.config.SPIN_FACTOR
        self.angular_velocity += paddle.velocity.y * self.config.PADDLE_SPIN_TRANSFER

        return abs(self.position.y - paddle.position.y) < paddle.height * self.config.PERFECT_HIT_BAND


OBSTACLE_KINDS = ('static', 'moving', 'rotating', 'breakable')


class Obstacle:
    """Rectangular obstacle. Breakable ones disappear after OBSTACLE_HEALTH hits."""

    def __init__(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        kind: str = 'static',
        config: Optional[Config] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        if kind not in OBSTACLE_KINDS:
            raise ValueError(f"Unknown obstacle kind: {kind}")
        config = config or Config()
        self.position = Vector2D(x, y)
        self.width = width
        self.height = height
        self.kind = kind
        self.active = True
        self.health = config.OBSTACLE_HEALTH if kind == 'breakable' else -1
        self.rotation = 0.0
        self.rotation_speed = config.OBSTACLE_ROTATION_SPEED if kind == 'rotating' else 0.0
        self.velocity = Vector2D(0.0, 0.0)

        if kind == 'moving':
            rng = rng if rng is not None else np.random.default_rng()
            self.velocity = Vector2D.from_angle(rng.uniform(0, 2 * math.pi), config.OBSTACLE_SPEED)

    @property
    def bounds(self) -> Rect:
        return Rect.from_center(self.position, self.width, self.height)

    def update(self, dt: float, field_width: float, field_height: float) -> None:
        if not self.active:
            return
        if self.kind == 'moving':
            self.position = self.position + self.velocity * dt
            vx, vy = self.velocity
            if self.position.x < 0 or self.position.x > field_width:
                vx = -vx
            if self.position.y < 0 or self.position.y > field_height:
                vy = -vy
            self.velocity = Vector2D(vx, vy)
        elif self.kind == 'rotating':
            self.rotation += self.rotation_speed * dt

    def take_damage(self, amount: int = 1) -> bool:
        """Returns True if the obstacle was destroyed."""
        if self.kind != 'breakable' or self.health <= 0:
            return False
        self.health -= amount
        if self.health <= 0:
            self.active = False
            return True
        return False


class PowerUp:
    """Collectible that triggers an effect when a ball touches it."""

    def __init__(self, x: float, y: float, kind: str, radius: float, lifetime: int):
        self.position = Vector2D(x, y)
        self.kind = kind
        self.radius = radius
        self.lifetime = lifetime
        self.age = 0.0
        self.active = True

    def update(self, dt: float) -> None:
        self.age += dt
        if self.age >= self.lifetime:
            self.active = False

    def touches(self, ball: Ball) -> bool:
        return self.active and check_circle_circle(
            self.position, self.radius, ball.position, ball.radius
        )
