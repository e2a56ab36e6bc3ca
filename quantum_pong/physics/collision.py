"""
Collision Detection & Response
==============================

Circle-rectangle and circle-circle tests plus impulse-based resolution.

Resolution scheme (for bodies A and B, normal n pointing from B to A):
    v_rel = v_A - v_B
    v_n   = v_rel . n            (>= 0 means the bodies are separating)
    e     = min(e_A, e_B)
    j     = -(1 + e) * v_n / (inv_A + inv_B)
    v_A  += n * j * inv_A
    v_B  -= n * j * inv_B

Penetration is corrected positionally, split by each body's share of the
total inverse mass, so a ball against a static rectangle absorbs all of it.

Degenerate geometry (zero-length normal) falls back to FALLBACK_NORMAL
instead of dividing by zero.
"""

from dataclasses import dataclass
from typing import Optional

from .body import PhysicsBody
from .vector import Vector2D, ZERO


FALLBACK_NORMAL = Vector2D(1.0, 0.0)


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its top-left corner."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_center(cls, center: Vector2D, width: float, height: float) -> 'Rect':
        return cls(center.x - width / 2, center.y - height / 2, width, height)

    @property
    def center(self) -> Vector2D:
        return Vector2D(self.x + self.width / 2, self.y + self.height / 2)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def closest_point(self, point: Vector2D) -> Vector2D:
        return Vector2D(
            min(max(point.x, self.x), self.right),
            min(max(point.y, self.y), self.bottom),
        )


@dataclass(frozen=True)
class Contact:
    """Result of a resolved collision."""
    normal: Vector2D
    point: Vector2D
    penetration: float
    relative_velocity: Vector2D
    normal_velocity: float
    impulse: float = 0.0
    offset: Vector2D = ZERO  # contact point relative to the rectangle center


def check_circle_rect(center: Vector2D, radius: float, rect: Rect) -> bool:
    closest = rect.closest_point(center)
    return (center - closest).magnitude_squared() < radius * radius


def check_circle_circle(c1: Vector2D, r1: float, c2: Vector2D, r2: float) -> bool:
    radius_sum = r1 + r2
    return (c1 - c2).magnitude_squared() < radius_sum * radius_sum


def _unit_normal(delta: Vector2D) -> Vector2D:
    normal = delta.normalize()
    if normal.magnitude_squared() == 0:
        return FALLBACK_NORMAL
    return normal


def compute_circle_rect_contact(
    ball: PhysicsBody,
    rect: Rect,
    rect_velocity: Vector2D = ZERO,
) -> Contact:
    """
    Contact geometry between a circular body and a rectangle.

    The ball must expose `radius`. Velocity terms describe the ball relative
    to the (possibly moving) rectangle.
    """
    closest = rect.closest_point(ball.position)
    delta = ball.position - closest
    normal = _unit_normal(delta)
    penetration = ball.radius - delta.magnitude()
    relative_velocity = ball.velocity - rect_velocity
    return Contact(
        normal=normal,
        point=closest,
        penetration=penetration,
        relative_velocity=relative_velocity,
        normal_velocity=relative_velocity.dot(normal),
        offset=closest - rect.center,
    )


def resolve_circle_rect(
    ball: PhysicsBody,
    rect: Rect,
    rect_velocity: Vector2D = ZERO,
    rect_body: Optional[PhysicsBody] = None,
    rect_restitution: Optional[float] = None,
) -> Optional[Contact]:
    """
    Resolve a ball against a rectangle.

    Args:
        ball: Circular body (needs `radius`)
        rect: Rectangle extent
        rect_velocity: Velocity of a kinematic rectangle (e.g. a paddle).
            Ignored when rect_body is given.
        rect_body: Dynamic body owning the rectangle. None means the
            rectangle is immovable.
        rect_restitution: Elasticity of an immovable or kinematic rectangle.
            None means the rectangle does not soften the bounce.

    Returns:
        The Contact, or None when the bodies are already separating.
    """
    if rect_body is not None:
        rect_velocity = rect_body.velocity
        inv_rect = rect_body.inverse_mass
        restitution = min(ball.restitution, rect_body.restitution)
    else:
        inv_rect = 0.0
        restitution = ball.restitution
        if rect_restitution is not None:
            restitution = min(restitution, rect_restitution)

    contact = compute_circle_rect_contact(ball, rect, rect_velocity)
    if contact.normal_velocity >= 0:
        return None

    inv_sum = ball.inverse_mass + inv_rect
    if inv_sum == 0:
        return None

    j = -(1 + restitution) * contact.normal_velocity / inv_sum
    impulse = contact.normal * j
    ball.velocity = ball.velocity + impulse * ball.inverse_mass
    if rect_body is not None:
        rect_body.velocity = rect_body.velocity - impulse * inv_rect

    if contact.penetration > 0:
        correction = contact.normal * contact.penetration
        ball.position = ball.position + correction * (ball.inverse_mass / inv_sum)
        if rect_body is not None:
            rect_body.position = rect_body.position - correction * (inv_rect / inv_sum)

    return Contact(
        normal=contact.normal,
        point=contact.point,
        penetration=contact.penetration,
        relative_velocity=contact.relative_velocity,
        normal_velocity=contact.normal_velocity,
        impulse=j,
        offset=contact.offset,
    )


def resolve_circle_circle(a: PhysicsBody, b: PhysicsBody) -> Optional[Contact]:
    """Resolve two circular bodies (both need `radius`)."""
    delta = a.position - b.position
    normal = _unit_normal(delta)
    relative_velocity = a.velocity - b.velocity
    normal_velocity = relative_velocity.dot(normal)
    if normal_velocity >= 0:
        return None

    inv_sum = a.inverse_mass + b.inverse_mass
    if inv_sum == 0:
        return None

    restitution = min(a.restitution, b.restitution)
    j = -(1 + restitution) * normal_velocity / inv_sum
    impulse = normal * j
    a.velocity = a.velocity + impulse * a.inverse_mass
    b.velocity = b.velocity - impulse * b.inverse_mass

    penetration = (a.radius + b.radius) - delta.magnitude()
    if penetration > 0:
        correction = normal * penetration
        a.position = a.position + correction * (a.inverse_mass / inv_sum)
        b.position = b.position - correction * (b.inverse_mass / inv_sum)

    midpoint = Vector2D.lerp(a.position, b.position, 0.5)
    return Contact(
        normal=normal,
        point=midpoint,
        penetration=penetration,
        relative_velocity=relative_velocity,
        normal_velocity=normal_velocity,
        impulse=j,
    )


def resolve_static_surface(body: PhysicsBody, normal: Vector2D) -> bool:
    """
    Reflect a body off an immovable flat surface.

    The surface normal may be given with either orientation; it is turned to
    face the incoming body. The normal component of velocity is reversed and
    scaled by the body's restitution.

    Returns:
        True if the velocity changed.
    """
    n = _unit_normal(normal)
    normal_velocity = body.velocity.dot(n)
    if normal_velocity > 0:
        n = -n
        normal_velocity = -normal_velocity
    if normal_velocity == 0:
        return False

    j = -(1 + body.restitution) * normal_velocity
    body.velocity = body.velocity + n * j
    return True
