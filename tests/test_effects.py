"""
Tests for power-up effects and the deferred action queue.

These tests verify:
    - Deferred actions run on their due tick, in scheduling order
    - Every effect variant changes the ball or match as intended
    - Timed effects revert themselves
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from quantum_pong.physics import Vector2D
from quantum_pong.game.entities import Paddle, Ball, PLAYER, AI
from quantum_pong.game.match_state import MatchState
from quantum_pong.game.quantum import QuantumLayer
from quantum_pong.game.effects import (
    DeferredActionQueue,
    SpeedBoost,
    SizeChange,
    MultiBall,
    Freeze,
    TimeSlow,
    Gravity,
    Shield,
    Superposition,
    Magnetic,
    Chaos,
    POWERUP_KINDS,
    effect_for_powerup,
    apply_effect,
)


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def ball(config):
    return Ball(Vector2D(600, 400), config, velocity=Vector2D(4, 3))


@pytest.fixture
def state(config, ball):
    return MatchState(
        player_paddle=Paddle(30, 400, PLAYER, config),
        ai_paddle=Paddle(1170, 400, AI, config),
        balls=[ball],
    )


@pytest.fixture
def queue():
    return DeferredActionQueue()


class TestDeferredActionQueue:
    """Test tick-based scheduling."""

    def test_runs_on_due_tick(self, queue):
        ran = []
        queue.schedule(3, lambda: ran.append('a'))
        assert queue.advance() == 0
        assert queue.advance() == 0
        assert ran == []
        assert queue.advance() == 1
        assert ran == ['a']
        assert len(queue) == 0

    def test_same_tick_runs_in_schedule_order(self, queue):
        ran = []
        for name in 'abc':
            queue.schedule(2, lambda name=name: ran.append(name))
        queue.advance(2)
        assert ran == ['a', 'b', 'c']

    def test_due_order(self, queue):
        ran = []
        queue.schedule(5, lambda: ran.append('late'))
        queue.schedule(1, lambda: ran.append('early'))
        queue.advance(10)
        assert ran == ['early', 'late']

    def test_minimum_delay_is_one_tick(self, queue):
        ran = []
        due = queue.schedule(0, lambda: ran.append(1))
        assert due == 1
        assert ran == []
        queue.advance()
        assert ran == [1]

    def test_clear(self, queue):
        queue.schedule(1, lambda: None)
        queue.advance()
        queue.schedule(1, lambda: None)
        queue.clear()
        assert len(queue) == 0
        assert queue.tick == 0


class TestEffectFactory:
    """Test power-up kind -> effect mapping."""

    @pytest.mark.parametrize("kind,effect_type", [
        ('speed_boost', SpeedBoost),
        ('size_change', SizeChange),
        ('multi_ball', MultiBall),
        ('freeze', Freeze),
        ('time_slow', TimeSlow),
        ('gravity', Gravity),
        ('shield', Shield),
        ('quantum', Superposition),
        ('magnetic', Magnetic),
        ('chaos', Chaos),
    ])
    def test_kinds(self, kind, effect_type, config, rng):
        assert isinstance(effect_for_powerup(kind, config, rng), effect_type)

    def test_every_kind_covered(self, config, rng):
        for kind in POWERUP_KINDS:
            effect_for_powerup(kind, config, rng)

    def test_unknown_kind(self, config, rng):
        with pytest.raises(ValueError):
            effect_for_powerup('teleport', config, rng)

    def test_size_change_grows_or_shrinks(self, config, rng):
        factors = {effect_for_powerup('size_change', config, rng).factor for _ in range(50)}
        assert factors == {config.SIZE_GROW_FACTOR, config.SIZE_SHRINK_FACTOR}


class TestApplyEffect:
    """Test each effect variant."""

    def test_speed_boost(self, state, ball, queue, config, rng):
        apply_effect(SpeedBoost(1.5), state, ball, queue, config, rng)
        assert ball.velocity == Vector2D(6, 4.5)

    def test_size_change_clamped(self, state, ball, queue, config, rng):
        apply_effect(SizeChange(1.5), state, ball, queue, config, rng)
        assert ball.radius == pytest.approx(config.BALL_RADIUS * 1.5)
        for _ in range(5):
            apply_effect(SizeChange(1.5), state, ball, queue, config, rng)
        assert ball.radius == config.BALL_RADIUS_MAX
        for _ in range(10):
            apply_effect(SizeChange(0.7), state, ball, queue, config, rng)
        assert ball.radius == config.BALL_RADIUS_MIN

    def test_multi_ball(self, state, ball, queue, config, rng):
        apply_effect(MultiBall(2), state, ball, queue, config, rng)
        assert len(state.balls) == 3
        for new_ball in state.balls[1:]:
            assert new_ball.position == ball.position
            assert new_ball.speed == pytest.approx(ball.speed)

    def test_multi_ball_respects_cap(self, state, ball, queue, config, rng):
        for _ in range(10):
            apply_effect(MultiBall(2), state, ball, queue, config, rng)
        assert len(state.balls) == config.MAX_BALLS

    def test_freeze_expires(self, state, ball, queue, config, rng):
        apply_effect(Freeze(5), state, ball, queue, config, rng)
        assert ball.frozen
        queue.advance(4)
        assert ball.frozen
        queue.advance()
        assert not ball.frozen

    def test_time_slow_expires(self, state, ball, queue, config, rng):
        apply_effect(TimeSlow(0.5, 10), state, ball, queue, config, rng)
        assert state.time_scale == 0.5
        queue.advance(10)
        assert state.time_scale == 1.0

    def test_gravity_expires(self, state, ball, queue, config, rng):
        apply_effect(Gravity(10), state, ball, queue, config, rng)
        assert ball.affected_by_gravity
        queue.advance(10)
        assert not ball.affected_by_gravity

    def test_shield_goes_to_last_hitter(self, state, ball, queue, config, rng):
        ball.last_hit_by = AI
        apply_effect(Shield(10), state, ball, queue, config, rng)
        assert state.ai_paddle.shield
        assert not state.player_paddle.shield
        queue.advance(10)
        assert not state.ai_paddle.shield

    def test_shield_defaults_to_player(self, state, ball, queue, config, rng):
        apply_effect(Shield(10), state, ball, queue, config, rng)
        assert state.player_paddle.shield

    def test_superposition(self, state, ball, queue, config, rng):
        layer = QuantumLayer(config, rng)
        apply_effect(Superposition(5), state, ball, queue, config, rng, quantum=layer)
        assert len(ball.ghosts) == 5
        assert state.quantum_active

    def test_superposition_needs_quantum_layer(self, state, ball, queue, config, rng):
        with pytest.raises(ValueError):
            apply_effect(Superposition(5), state, ball, queue, config, rng)

    def test_magnetic_field_pulls_toward_center(self, state, ball, queue, config, rng):
        apply_effect(Magnetic(300.0, 5.0, 10), state, ball, queue, config, rng)
        assert len(state.force_fields) == 1
        field = state.force_fields[0]
        assert field.position == Vector2D(config.SCREEN_WIDTH / 2, config.SCREEN_HEIGHT / 2)

        ball.position = Vector2D(700, 400)
        force = field.apply_to(ball)
        assert force.x < 0
        assert force.y == pytest.approx(0.0)

    def test_magnetic_field_expires(self, state, ball, queue, config, rng):
        apply_effect(Magnetic(300.0, 5.0, 10), state, ball, queue, config, rng)
        field = state.force_fields[0]
        queue.advance(10)
        assert state.force_fields == []
        assert not field.active

    def test_chaos_raises_level_and_spawns(self, state, ball, queue, config, rng):
        spawned = []
        apply_effect(Chaos(2.0, 3, 60), state, ball, queue, config, rng,
                     spawn_powerup=lambda: spawned.append(queue.tick))
        assert state.chaos_level == 2.0
        for _ in range(200):
            queue.advance()
        assert spawned == [1, 60, 120]

    def test_chaos_level_capped(self, state, ball, queue, config, rng):
        for _ in range(10):
            apply_effect(Chaos(2.0, 0, 60), state, ball, queue, config, rng)
        assert state.chaos_level == config.CHAOS_MAX_LEVEL
        assert len(queue) == 0

    def test_unknown_effect(self, state, ball, queue, config, rng):
        with pytest.raises(TypeError):
            apply_effect(object(), state, ball, queue, config, rng)
