"""
Quantum Layer
=============

Cosmetic randomness layered on top of the physics. None of it is real
quantum mechanics:

- Superposition: a ball spawns ghost copies around itself that drift and
  fade; once they are faint enough the ball collapses onto one of them.
- Tunneling: a ball that meets an obstacle may pass straight through it.
- Entanglement: a paddle hit is occasionally flagged as a quantum hit.
- Chaos fluctuations: above CHAOS_FLUCTUATION_THRESHOLD the chaos level
  occasionally throws a ball into superposition.

All draws come from the match's numpy Generator so seeded matches replay
identically.
"""

import math
from dataclasses import dataclass
from typing import List

import numpy as np

from ..physics import Vector2D, Rect
from ..utils.logger import get_logger
from .entities import Ball
from .match_state import MatchState

import sys
sys.path.append('../..')
from config import Config

logger = get_logger(__name__)

GHOST_START_ALPHA = 0.8

# Ticks a tunneling event keeps the match flagged as quantum-active
TUNNEL_GLOW_TICKS = 30


@dataclass
class Ghost:
    position: Vector2D
    velocity: Vector2D
    alpha: float = GHOST_START_ALPHA


class QuantumLayer:
    """Superposition, tunneling and entanglement rolls for one match."""

    def __init__(self, config: Config, rng: np.random.Generator):
        self.config = config
        self.rng = rng
        self.superpositions = 0
        self.tunnels = 0
        self.entanglements = 0
        self._tunnel_glow = 0

    def reset(self) -> None:
        self._tunnel_glow = 0

    @property
    def enabled(self) -> bool:
        return self.config.QUANTUM_ENABLED

    def enter_superposition(self, ball: Ball, count: int = 0) -> None:
        count = count or self.config.QUANTUM_GHOST_COUNT
        offset = self.config.QUANTUM_GHOST_OFFSET
        spread = self.config.QUANTUM_GHOST_SPREAD
        ghosts: List[Ghost] = []
        for i in range(count):
            angle = 2 * math.pi * i / count
            direction = Vector2D.from_angle(angle)
            ghosts.append(Ghost(
                position=ball.position + direction * offset,
                velocity=ball.velocity + direction * spread,
            ))
        ball.ghosts = ghosts
        self.superpositions += 1

    def collapse(self, ball: Ball) -> None:
        """Move the ball onto a randomly chosen ghost and clear the ghosts."""
        if ball.ghosts:
            ghost = ball.ghosts[int(self.rng.integers(len(ball.ghosts)))]
            ball.position = ghost.position
            ball.velocity = ghost.velocity
        ball.ghosts = []

    def update_ghosts(self, ball: Ball, dt: float) -> None:
        if not ball.ghosts:
            return
        fade = self.config.QUANTUM_GHOST_FADE
        for ghost in ball.ghosts:
            ghost.position = ghost.position + ghost.velocity * dt
            ghost.alpha *= fade
        ball.ghosts = [g for g in ball.ghosts if g.alpha > self.config.QUANTUM_GHOST_MIN_ALPHA]

        if ball.ghosts and max(g.alpha for g in ball.ghosts) < self.config.QUANTUM_COLLAPSE_ALPHA:
            self.collapse(ball)

    def try_tunnel(self, ball: Ball, rect: Rect) -> bool:
        """
        Roll for tunneling through `rect`. On success the ball is placed
        just past the far side along its horizontal direction of travel.
        """
        if not self.enabled or self.rng.random() >= self.config.QUANTUM_TUNNELING_CHANCE:
            return False
        if ball.velocity.x >= 0:
            ball.position = ball.position.with_x(rect.right + ball.radius + 1)
        else:
            ball.position = ball.position.with_x(rect.x - ball.radius - 1)
        self.tunnels += 1
        self._tunnel_glow = TUNNEL_GLOW_TICKS
        logger.debug(f"Ball {ball.ball_id} tunneled at {ball.position}")
        return True

    def roll_entanglement(self) -> bool:
        if not self.enabled:
            return False
        if self.rng.random() < self.config.QUANTUM_ENTANGLE_CHANCE:
            self.entanglements += 1
            return True
        return False

    def fluctuate(self, state: MatchState) -> bool:
        """Throw one random active ball into superposition. Returns False if there is none."""
        balls = state.active_balls()
        if not balls:
            return False
        ball = balls[int(self.rng.integers(len(balls)))]
        self.enter_superposition(ball, self.config.CHAOS_GHOST_COUNT)
        logger.debug(f"Chaos fluctuation on ball {ball.ball_id}")
        return True

    def update(self, state: MatchState, dt: float) -> None:
        """Per-tick ghost motion, random superposition, chaos fluctuations, quantum-active flag."""
        for ball in state.balls:
            self.update_ghosts(ball, dt)

        if self.enabled and self.rng.random() < self.config.QUANTUM_SUPERPOSITION_CHANCE:
            candidates = [b for b in state.active_balls() if not b.in_superposition]
            if candidates:
                ball = candidates[int(self.rng.integers(len(candidates)))]
                self.enter_superposition(ball)

        if (self.enabled and state.chaos_level > self.config.CHAOS_FLUCTUATION_THRESHOLD
                and self.rng.random() < self.config.CHAOS_FLUCTUATION_CHANCE):
            self.fluctuate(state)

        if self._tunnel_glow > 0:
            self._tunnel_glow -= 1
        state.quantum_active = self._tunnel_glow > 0 or any(b.in_superposition for b in state.balls)
