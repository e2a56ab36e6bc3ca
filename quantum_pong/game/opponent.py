"""
Scripted Opponent
=================

Rule-based paddle that tracks the predicted intercept with a
difficulty-dependent aim error and reaction smoothing. Used as the
sparring partner for headless training and for --watch demos.

The 'quantum' level plays differently: it chases the first ghost of a
ball in superposition, and otherwise aims at a straight-line forecast
(no wall bounces) blurred by a wide uniform uncertainty.
"""

from typing import Optional, Sequence

import numpy as np

from ..ai.features import select_target_ball
from ..ai.trajectory import predict_intercept_y, is_approaching
from .entities import Paddle


class ScriptedOpponent:
    """
    Intercept-tracking paddle controller.

    Difficulty presets:
        error     - max aim error in pixels at full field distance
        reaction  - fraction of the old target kept each tick (higher = slower)
        threshold - dead zone around the target in pixels

    For 'quantum', error is the half-width of the uniform uncertainty
    added to every forecast.
    """

    SKILL_LEVELS = {
        'easy': {'error': 60, 'reaction': 0.3, 'threshold': 8},
        'medium': {'error': 30, 'reaction': 0.15, 'threshold': 5},
        'hard': {'error': 10, 'reaction': 0.05, 'threshold': 3},
        'quantum': {'error': 125, 'reaction': 0.0, 'threshold': 10},
    }

    def __init__(
        self,
        difficulty: str = 'medium',
        rng: Optional[np.random.Generator] = None,
    ):
        if difficulty not in self.SKILL_LEVELS:
            raise ValueError(
                f"Unknown difficulty '{difficulty}'. Choose from {list(self.SKILL_LEVELS)}"
            )
        settings = self.SKILL_LEVELS[difficulty]
        self.difficulty = difficulty
        self.error = settings['error']
        self.reaction = settings['reaction']
        self.threshold = settings['threshold']
        self.rng = rng if rng is not None else np.random.default_rng()
        self.target_y: Optional[float] = None

    def reset(self) -> None:
        self.target_y = None

    def decide(self, paddle: Paddle, balls: Sequence, width: float, height: float) -> int:
        """Direction (-1, 0, +1) for `paddle` this tick."""
        if self.difficulty == 'quantum':
            return self._decide_quantum(paddle, balls)

        if self.target_y is None:
            self.target_y = height / 2

        ball = select_target_ball(balls, paddle.position.x)
        if ball is not None and is_approaching(ball.position, ball.velocity, paddle.position.x):
            target = predict_intercept_y(ball.position, ball.velocity, paddle.position.x, height)
            distance_factor = abs(ball.position.x - paddle.position.x) / width
            error = self.error * distance_factor
            target += self.rng.uniform(-error, error)
        else:
            target = height / 2

        self.target_y += (target - self.target_y) * (1 - self.reaction)

        center = paddle.position.y
        if center < self.target_y - self.threshold:
            return 1
        if center > self.target_y + self.threshold:
            return -1
        return 0

    def _decide_quantum(self, paddle: Paddle, balls: Sequence) -> int:
        ball = select_target_ball(balls, paddle.position.x)
        if ball is None:
            return 0

        if ball.in_superposition:
            target = ball.ghosts[0].position.y
        else:
            vx = abs(ball.velocity.x) or 1.0
            time_to_reach = abs(ball.position.x - paddle.position.x) / vx
            target = ball.position.y + ball.velocity.y * time_to_reach
            target += self.rng.uniform(-self.error, self.error)
        self.target_y = target

        offset = target - paddle.position.y
        if offset > self.threshold:
            return 1
        if offset < -self.threshold:
            return -1
        return 0
