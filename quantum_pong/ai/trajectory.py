"""
Ball Trajectory Prediction
==========================

Extrapolates where the ball will cross a paddle's horizontal line,
folding the predicted y back into the field for every top/bottom wall
bounce (elastic reflection).
"""

from ..physics.vector import Vector2D

# Fold limit; with the configured speed caps a ball never bounces this often
# before crossing the field.
MAX_BOUNCES = 32


def fold_into_field(y: float, height: float) -> float:
    """Reflect y off the walls at 0 and height until it lies inside."""
    bounce_count = 0
    while (y < 0 or y > height) and bounce_count < MAX_BOUNCES:
        if y < 0:
            y = -y
        elif y > height:
            y = 2 * height - y
        bounce_count += 1
    return max(0.0, min(float(height), y))


def predict_intercept_y(
    position: Vector2D,
    velocity: Vector2D,
    target_x: float,
    height: float,
) -> float:
    """
    Predict the ball's y when it reaches target_x.

    Returns the current y when the ball has no horizontal speed or is
    moving away from target_x.
    """
    if velocity.x == 0:
        return position.y

    time_to_target = (target_x - position.x) / velocity.x
    if time_to_target <= 0:
        return position.y

    predicted_y = position.y + velocity.y * time_to_target
    return fold_into_field(predicted_y, height)


def is_approaching(position: Vector2D, velocity: Vector2D, target_x: float) -> bool:
    """True when the ball is moving toward target_x."""
    return (target_x - position.x) * velocity.x > 0
