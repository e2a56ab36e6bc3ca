"""
Force Fields
============

Circular regions that push bodies around through PhysicsBody.apply_force.
Strength falls off quadratically from the center to the edge:

    falloff = 1 - distance / radius
    |F|     = strength * falloff^2

Kinds:
    attractive  - toward the center
    repulsive   - away from the center
    vortex      - perpendicular to the center direction (orbiting)
    directional - constant +x push, still scaled by the falloff
"""

from typing import Optional

from .body import PhysicsBody
from .vector import Vector2D, ZERO


FIELD_KINDS = ('attractive', 'repulsive', 'vortex', 'directional')


class ForceField:
    """A falloff force around a fixed point. Inactive fields exert nothing."""

    def __init__(self, center: Vector2D, radius: float, strength: float, kind: str = 'attractive'):
        if kind not in FIELD_KINDS:
            raise ValueError(f"Unknown force field kind: {kind}")
        if radius <= 0:
            raise ValueError("Force field radius must be positive")
        self.position = center
        self.radius = radius
        self.strength = strength
        self.kind = kind
        self.active = True

    def force_on(self, position: Vector2D) -> Vector2D:
        """Force the field exerts on a body at `position`."""
        if not self.active:
            return ZERO

        to_center = self.position - position
        distance = to_center.magnitude()
        if distance == 0 or distance > self.radius:
            return ZERO

        falloff = 1 - distance / self.radius
        magnitude = self.strength * falloff * falloff
        direction = to_center.normalize()

        if self.kind == 'attractive':
            return direction * magnitude
        if self.kind == 'repulsive':
            return direction * -magnitude
        if self.kind == 'vortex':
            return Vector2D(-direction.y, direction.x) * magnitude
        return Vector2D(magnitude, 0.0)

    def apply_to(self, body: PhysicsBody) -> Optional[Vector2D]:
        """Accumulate this field's force on `body`. Returns the force, or None if out of reach."""
        force = self.force_on(body.position)
        if force == ZERO:
            return None
        body.apply_force(force)
        return force
