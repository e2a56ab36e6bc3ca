"""
Power-up Effects
================

A closed set of effect variants and one function that applies them.
Timed effects schedule their own reversal on a DeferredActionQueue that
the orchestrator advances once per tick, so nothing depends on wall-clock
timers.

    effect = effect_for_powerup('time_slow', config, rng)
    apply_effect(effect, state, ball, queue, config, rng,
                 quantum=layer, spawn_powerup=game.spawn_powerup)
    ...
    queue.advance()   # once per tick; runs whatever is due
"""

import heapq
import itertools
import math
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple, Union

import numpy as np

from ..physics import Vector2D, ForceField
from .entities import Ball, PLAYER
from .match_state import MatchState
from .quantum import QuantumLayer

import sys
sys.path.append('../..')
from config import Config


@dataclass(frozen=True)
class SpeedBoost:
    factor: float


@dataclass(frozen=True)
class SizeChange:
    factor: float


@dataclass(frozen=True)
class MultiBall:
    count: int


@dataclass(frozen=True)
class Freeze:
    duration: int


@dataclass(frozen=True)
class TimeSlow:
    scale: float
    duration: int


@dataclass(frozen=True)
class Gravity:
    duration: int


@dataclass(frozen=True)
class Shield:
    duration: int


@dataclass(frozen=True)
class Superposition:
    ghosts: int


@dataclass(frozen=True)
class Magnetic:
    radius: float
    strength: float
    duration: int


@dataclass(frozen=True)
class Chaos:
    level_gain: float
    spawns: int
    interval: int


Effect = Union[
    SpeedBoost, SizeChange, MultiBall, Freeze, TimeSlow, Gravity,
    Shield, Superposition, Magnetic, Chaos,
]

POWERUP_KINDS = (
    'speed_boost', 'size_change', 'multi_ball', 'freeze', 'time_slow', 'gravity',
    'shield', 'quantum', 'magnetic', 'chaos',
)


class DeferredActionQueue:
    """
    Tick-counted scheduler.

    Actions run when advance() reaches their due tick. Actions due on the
    same tick run in the order they were scheduled.
    """

    def __init__(self):
        self.tick = 0
        self._heap: List[Tuple[int, int, Callable[[], None]]] = []
        self._sequence = itertools.count()

    def schedule(self, delay_ticks: int, action: Callable[[], None]) -> int:
        """
        Run `action` after `delay_ticks` ticks (at least one).

        Returns:
            The tick the action is due on
        """
        due = self.tick + max(1, int(delay_ticks))
        heapq.heappush(self._heap, (due, next(self._sequence), action))
        return due

    def advance(self, ticks: int = 1) -> int:
        """Move time forward and run every action that is now due. Returns the count run."""
        self.tick += ticks
        ran = 0
        while self._heap and self._heap[0][0] <= self.tick:
            _, _, action = heapq.heappop(self._heap)
            action()
            ran += 1
        return ran

    def clear(self) -> None:
        self._heap.clear()
        self.tick = 0

    def __len__(self) -> int:
        return len(self._heap)


def effect_for_powerup(kind: str, config: Config, rng: np.random.Generator) -> Effect:
    """Build the effect a collected power-up of `kind` triggers."""
    if kind == 'speed_boost':
        return SpeedBoost(config.SPEED_BOOST_FACTOR)
    if kind == 'size_change':
        grow = rng.random() < 0.5
        return SizeChange(config.SIZE_GROW_FACTOR if grow else config.SIZE_SHRINK_FACTOR)
    if kind == 'multi_ball':
        return MultiBall(config.MULTI_BALL_COUNT)
    if kind == 'freeze':
        return Freeze(config.FREEZE_DURATION_TICKS)
    if kind == 'time_slow':
        return TimeSlow(config.TIME_SLOW_SCALE, config.POWERUP_DURATION_TICKS)
    if kind == 'gravity':
        return Gravity(config.POWERUP_DURATION_TICKS)
    if kind == 'shield':
        return Shield(config.POWERUP_DURATION_TICKS)
    if kind == 'quantum':
        return Superposition(config.QUANTUM_POWERUP_GHOSTS)
    if kind == 'magnetic':
        return Magnetic(config.MAGNETIC_FIELD_RADIUS, config.MAGNETIC_FIELD_STRENGTH,
                        config.POWERUP_DURATION_TICKS)
    if kind == 'chaos':
        return Chaos(config.CHAOS_LEVEL_GAIN, config.CHAOS_POWERUP_SPAWNS,
                     config.CHAOS_SPAWN_INTERVAL_TICKS)
    raise ValueError(f"Unknown power-up kind: {kind}")


def apply_effect(
    effect: Effect,
    state: MatchState,
    ball: Ball,
    queue: DeferredActionQueue,
    config: Config,
    rng: np.random.Generator,
    quantum: Optional[QuantumLayer] = None,
    spawn_powerup: Optional[Callable[[], Any]] = None,
) -> None:
    """
    Apply `effect` to `ball` / `state`, scheduling reversal for timed effects.

    Args:
        quantum: Layer that owns superposition; required for Superposition
        spawn_powerup: Orchestrator hook Chaos uses to drop extra power-ups.
            Without it Chaos only raises the chaos level.
    """
    if isinstance(effect, SpeedBoost):
        ball.velocity = ball.velocity * effect.factor

    elif isinstance(effect, SizeChange):
        radius = ball.radius * effect.factor
        ball.radius = min(config.BALL_RADIUS_MAX, max(config.BALL_RADIUS_MIN, radius))

    elif isinstance(effect, MultiBall):
        speed = ball.speed
        for _ in range(effect.count):
            if len(state.balls) >= config.MAX_BALLS:
                break
            velocity = Vector2D.from_angle(rng.uniform(0, 2 * math.pi), speed)
            state.balls.append(Ball(ball.position, config, velocity=velocity))

    elif isinstance(effect, Freeze):
        ball.frozen = True

        def unfreeze():
            ball.frozen = False
        queue.schedule(effect.duration, unfreeze)

    elif isinstance(effect, TimeSlow):
        state.time_scale = effect.scale

        def restore_time():
            state.time_scale = 1.0
        queue.schedule(effect.duration, restore_time)

    elif isinstance(effect, Gravity):
        ball.affected_by_gravity = not ball.affected_by_gravity

        def drop_gravity():
            ball.affected_by_gravity = False
        queue.schedule(effect.duration, drop_gravity)

    elif isinstance(effect, Shield):
        paddle = state.paddle(ball.last_hit_by or PLAYER)
        paddle.shield = True

        def drop_shield():
            paddle.shield = False
        queue.schedule(effect.duration, drop_shield)

    elif isinstance(effect, Superposition):
        if quantum is None:
            raise ValueError("Superposition needs the quantum layer")
        quantum.enter_superposition(ball, effect.ghosts)
        state.quantum_active = True

    elif isinstance(effect, Magnetic):
        center = Vector2D(config.SCREEN_WIDTH / 2, config.SCREEN_HEIGHT / 2)
        field = ForceField(center, effect.radius, effect.strength, 'attractive')
        state.force_fields.append(field)

        def remove_field():
            field.active = False
            if field in state.force_fields:
                state.force_fields.remove(field)
        queue.schedule(effect.duration, remove_field)

    elif isinstance(effect, Chaos):
        state.chaos_level = min(config.CHAOS_MAX_LEVEL, state.chaos_level + effect.level_gain)
        if spawn_powerup is not None:
            for i in range(effect.spawns):
                queue.schedule(i * effect.interval, spawn_powerup)

    else:
        raise TypeError(f"Unhandled effect: {effect!r}")
