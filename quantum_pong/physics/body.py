"""
Physics Body & Integrator
=========================

A body with mass, velocity and force/torque accumulators. Forces are
collected during a tick with apply_force() and converted into motion by
integrate(dt), which also clears the accumulators.

Integration order (semi-implicit Euler):
    a = F / m
    v += a * dt
    v -= v * drag
    v *= friction
    v = limit(v, max_velocity)
    p += v * dt
    w += (torque / I) * dt;  w *= rotational_damping;  rotation += w * dt

A body with mass <= 0 is static: zero inverse mass, never integrated, and
unaffected by impulses.
"""

from typing import Optional

from .vector import Vector2D, ZERO


class PhysicsBody:
    """
    Rigid-body-like point mass with angular state.

    Attributes:
        position: Center of the body
        velocity: Linear velocity (units per tick)
        force: Accumulated force for the current tick
        mass: Mass (<= 0 means static)
        inverse_mass: 1 / mass, or 0 for static bodies
        restitution: Elasticity used in collision response
    """

    def __init__(
        self,
        position: Vector2D,
        mass: float = 1.0,
        restitution: float = 1.0,
        drag: float = 0.0,
        friction: float = 1.0,
        max_velocity: float = float('inf'),
        rotational_damping: float = 1.0,
        velocity: Optional[Vector2D] = None,
    ):
        self.position = position
        self.velocity = velocity if velocity is not None else ZERO
        self.force = ZERO

        self.mass = mass
        self.inverse_mass = 1.0 / mass if mass > 0 else 0.0
        self.restitution = restitution
        self.drag = drag
        self.friction = friction
        self.max_velocity = max_velocity

        self.angular_velocity = 0.0
        self.rotation = 0.0
        self.torque = 0.0
        self.moment_of_inertia = mass * 10 if mass > 0 else 0.0
        self.rotational_damping = rotational_damping

    @property
    def is_static(self) -> bool:
        return self.inverse_mass == 0.0

    def apply_force(self, force: Vector2D) -> None:
        """Accumulate a force; it takes effect on the next integrate()."""
        self.force = self.force + force

    def apply_impulse(self, impulse: Vector2D) -> None:
        """Instant velocity change scaled by inverse mass."""
        if self.is_static:
            return
        self.velocity = self.velocity + impulse * self.inverse_mass

    def apply_torque(self, torque: float) -> None:
        if self.is_static:
            return
        self.torque += torque

    def integrate(self, dt: float) -> None:
        """Advance the body by dt and clear the force/torque accumulators."""
        if self.is_static:
            self.force = ZERO
            self.torque = 0.0
            return

        acceleration = self.force * self.inverse_mass
        velocity = self.velocity + acceleration * dt

        if self.drag:
            velocity = velocity - velocity * self.drag
        velocity = velocity * self.friction
        velocity = velocity.limit(self.max_velocity)

        self.velocity = velocity
        self.position = self.position + velocity * dt

        angular_acceleration = self.torque / self.moment_of_inertia
        self.angular_velocity += angular_acceleration * dt
        self.angular_velocity *= self.rotational_damping
        self.rotation += self.angular_velocity * dt

        self.force = ZERO
        self.torque = 0.0

    def kinetic_energy(self) -> float:
        """Linear plus rotational kinetic energy."""
        if self.is_static:
            return 0.0
        linear = 0.5 * self.mass * self.velocity.magnitude_squared()
        rotational = 0.5 * self.moment_of_inertia * self.angular_velocity ** 2
        return linear + rotational

    def momentum(self) -> Vector2D:
        return self.velocity * self.mass
