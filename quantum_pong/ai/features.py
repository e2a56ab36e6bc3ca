"""
State Encoding
==============

Turns the match state seen from the AI paddle into the fixed-length,
normalized feature vector consumed by the neural controller.

Feature layout (all values roughly in [-1, 1] or [0, 1]):
     0  paddle_y          paddle center y / height
     1  paddle_vy         paddle vertical velocity / 10
     2  paddle_x          paddle center x / width
     3  ball_x            ball x / width
     4  ball_y            ball y / height
     5  ball_vx           ball x velocity / 20
     6  ball_vy           ball y velocity / 20
     7  ball_spin         ball angular velocity / pi
     8  rel_x             (ball x - paddle x) / width
     9  rel_y             (ball y - paddle y) / height
    10  distance          min(1, |ball - paddle| / 1000)
    11  angle             angle from paddle to ball / pi
    12  future_x          ball x extrapolated 30 ticks ahead / width
    13  intercept_y       wall-folded predicted y at the paddle line / height
    14  ai_score          AI score / win score
    15  score_diff        (AI score - opponent score) / win score
    16  ball_speed        ball speed / max ball speed
    17  quantum_active    1 if a quantum event is active
    18  approaching       1 if the ball moves toward the AI paddle
    19  time_scale        current simulation time scale
"""

import math
from typing import Sequence

import numpy as np

from .trajectory import predict_intercept_y, is_approaching

FEATURE_NAMES = [
    'paddle_y', 'paddle_vy', 'paddle_x',
    'ball_x', 'ball_y', 'ball_vx', 'ball_vy', 'ball_spin',
    'rel_x', 'rel_y', 'distance', 'angle',
    'future_x', 'intercept_y',
    'ai_score', 'score_diff', 'ball_speed',
    'quantum_active', 'approaching', 'time_scale',
]

FEATURE_COUNT = len(FEATURE_NAMES)

# Indices used by the heuristic blend policy
IDX_PADDLE_Y = FEATURE_NAMES.index('paddle_y')
IDX_INTERCEPT_Y = FEATURE_NAMES.index('intercept_y')
IDX_APPROACHING = FEATURE_NAMES.index('approaching')

LOOKAHEAD_TICKS = 30


def _clip(value: float, low: float = -1.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def select_target_ball(balls: Sequence, paddle_x: float):
    """
    Pick the ball the AI should react to: the closest one heading toward
    the paddle, otherwise the first active ball.
    """
    approaching = [
        b for b in balls
        if b.is_active and is_approaching(b.position, b.velocity, paddle_x)
    ]
    if approaching:
        return min(approaching, key=lambda b: abs(b.position.x - paddle_x))
    for ball in balls:
        if ball.is_active:
            return ball
    return balls[0] if balls else None


def encode_features(
    paddle,
    ball,
    width: float,
    height: float,
    ai_score: int = 0,
    opponent_score: int = 0,
    win_score: int = 11,
    max_ball_speed: float = 25.0,
    quantum_active: bool = False,
    time_scale: float = 1.0,
) -> np.ndarray:
    """
    Encode the game state for the AI paddle.

    Args:
        paddle: AI paddle (center position, velocity)
        ball: Ball to track (position, velocity, angular_velocity)
        width, height: Field size in pixels

    Returns:
        np.ndarray of shape (FEATURE_COUNT,), dtype float64
    """
    p = paddle.position
    b = ball.position
    v = ball.velocity

    intercept = predict_intercept_y(b, v, p.x, height)
    future_x = (b.x + v.x * LOOKAHEAD_TICKS) / width
    angle = math.atan2(b.y - p.y, b.x - p.x)

    features = np.array([
        p.y / height,
        _clip(paddle.velocity.y / 10),
        p.x / width,
        b.x / width,
        b.y / height,
        _clip(v.x / 20),
        _clip(v.y / 20),
        _clip(ball.angular_velocity / math.pi),
        (b.x - p.x) / width,
        (b.y - p.y) / height,
        min(1.0, p.distance_to(b) / 1000),
        angle / math.pi,
        _clip(future_x, 0.0, 1.0),
        intercept / height,
        ai_score / win_score,
        _clip((ai_score - opponent_score) / win_score),
        _clip(v.magnitude() / max_ball_speed, 0.0, 1.0),
        1.0 if quantum_active else 0.0,
        1.0 if is_approaching(b, v, p.x) else 0.0,
        float(time_scale),
    ], dtype=np.float64)

    return features
