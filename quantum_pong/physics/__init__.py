"""
Physics Module
==============

Vector math, force-integrating bodies, force fields, and impulse-based
collision response.
"""

from .vector import Vector2D
from .body import PhysicsBody
from .force_field import ForceField, FIELD_KINDS
from .collision import (
    Rect,
    Contact,
    check_circle_rect,
    check_circle_circle,
    compute_circle_rect_contact,
    resolve_circle_rect,
    resolve_circle_circle,
    resolve_static_surface,
)

__all__ = [
    'Vector2D',
    'PhysicsBody',
    'ForceField',
    'FIELD_KINDS',
    'Rect',
    'Contact',
    'check_circle_rect',
    'check_circle_circle',
    'compute_circle_rect_contact',
    'resolve_circle_rect',
    'resolve_circle_circle',
    'resolve_static_surface',
]
