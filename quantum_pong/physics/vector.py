"""
2D Vector Math
==============

Immutable 2D vector used by the physics and collision code. Every operation
returns a new vector, so bodies can share vectors without aliasing bugs.
"""

import math
from typing import Iterator


class Vector2D:
    """An immutable 2D vector."""

    __slots__ = ('x', 'y')

    def __init__(self, x: float = 0.0, y: float = 0.0):
        object.__setattr__(self, 'x', float(x))
        object.__setattr__(self, 'y', float(y))

    def __setattr__(self, name, value):
        raise AttributeError("Vector2D is immutable")

    def __repr__(self) -> str:
        return f"Vector2D({self.x:.4g}, {self.y:.4g})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, Vector2D):
            return NotImplemented
        return self.x == other.x and self.y == other.y

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __add__(self, other: 'Vector2D') -> 'Vector2D':
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Vector2D') -> 'Vector2D':
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> 'Vector2D':
        return Vector2D(self.x * scalar, self.y * scalar)

    __rmul__ = __mul__

    def __truediv__(self, scalar: float) -> 'Vector2D':
        if scalar == 0:
            return Vector2D(0.0, 0.0)
        return Vector2D(self.x / scalar, self.y / scalar)

    def __neg__(self) -> 'Vector2D':
        return Vector2D(-self.x, -self.y)

    def dot(self, other: 'Vector2D') -> float:
        return self.x * other.x + self.y * other.y

    def cross(self, other: 'Vector2D') -> float:
        """Z component of the 3D cross product."""
        return self.x * other.y - self.y * other.x

    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def magnitude_squared(self) -> float:
        return self.x * self.x + self.y * self.y

    def normalize(self) -> 'Vector2D':
        """Unit vector in the same direction; the zero vector stays zero."""
        mag = self.magnitude()
        if mag == 0:
            return Vector2D(0.0, 0.0)
        return Vector2D(self.x / mag, self.y / mag)

    def limit(self, max_magnitude: float) -> 'Vector2D':
        """Clamp the magnitude to max_magnitude, keeping direction."""
        mag = self.magnitude()
        if mag > max_magnitude:
            return self * (max_magnitude / mag)
        return self

    def rotate(self, angle: float) -> 'Vector2D':
        cos = math.cos(angle)
        sin = math.sin(angle)
        return Vector2D(self.x * cos - self.y * sin, self.x * sin + self.y * cos)

    def angle(self) -> float:
        return math.atan2(self.y, self.x)

    def distance_to(self, other: 'Vector2D') -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def with_x(self, x: float) -> 'Vector2D':
        return Vector2D(x, self.y)

    def with_y(self, y: float) -> 'Vector2D':
        return Vector2D(self.x, y)

    @staticmethod
    def from_angle(angle: float, magnitude: float = 1.0) -> 'Vector2D':
        return Vector2D(math.cos(angle) * magnitude, math.sin(angle) * magnitude)

    @staticmethod
    def lerp(a: 'Vector2D', b: 'Vector2D', t: float) -> 'Vector2D':
        return Vector2D(a.x + (b.x - a.x) * t, a.y + (b.y - a.y) * t)


ZERO = Vector2D(0.0, 0.0)
