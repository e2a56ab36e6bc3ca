"""
Tests for the neural controller.

These tests verify:
    - Action selection returns -1, 0 or +1
    - Greedy inference is idempotent and never mutates weights
    - Epsilon decay and its floor
    - Online training from scoring outcomes
    - The heuristic blend policy
"""

import threading

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config
from quantum_pong.ai.controller import (
    NeuralController,
    ACTIONS,
    UP,
    STAY,
    DOWN,
    action_to_index,
    index_to_action,
)
from quantum_pong.ai.features import FEATURE_COUNT, IDX_PADDLE_Y, IDX_INTERCEPT_Y, IDX_APPROACHING
from quantum_pong.ai.network import FeatureSizeError
from quantum_pong.game import QuantumPong, ScriptedOpponent

FEATURES = np.array([0.5, 0.0, 0.5, 0.5])


@pytest.fixture
def config():
    """Small network so tests run fast."""
    return Config(HIDDEN_LAYERS=[16, 8], SEED=0)


@pytest.fixture
def controller(config):
    return NeuralController(config=config, input_size=4)


class TestActionMapping:
    """Test action/index conversion."""

    def test_round_trip(self):
        for action in ACTIONS:
            assert index_to_action(action_to_index(action)) == action

    def test_named_actions(self):
        assert (UP, STAY, DOWN) == (-1, 0, 1)

    @pytest.mark.parametrize("action", [2, -2, 0.5, None])
    def test_invalid_action(self, action):
        with pytest.raises(ValueError):
            action_to_index(action)

    @pytest.mark.parametrize("index", [-1, 3])
    def test_invalid_index(self, index):
        with pytest.raises(ValueError):
            index_to_action(index)


class TestDecideAction:
    """Test inference."""

    def test_actions_in_range(self, controller, rng):
        for _ in range(200):
            assert controller.decide_action(rng.uniform(-1, 1, size=4)) in ACTIONS

    def test_greedy_is_idempotent(self, controller):
        first = controller.decide_action(FEATURES, explore=False)
        for _ in range(20):
            assert controller.decide_action(FEATURES, explore=False) == first

    def test_greedy_matches_argmax(self, controller):
        output = controller.network.predict(FEATURES)
        assert controller.decide_action(FEATURES, explore=False) == ACTIONS[int(np.argmax(output))]

    def test_greedy_leaves_epsilon(self, controller, config):
        controller.decide_action(FEATURES, explore=False)
        assert controller.epsilon == config.EPSILON_START

    def test_decide_never_mutates_weights(self, controller, rng):
        before = controller.network.to_flat()
        for _ in range(100):
            controller.decide_action(rng.uniform(-1, 1, size=4), explore=True)
        assert np.array_equal(before, controller.network.to_flat())

    def test_wrong_feature_size(self, controller):
        with pytest.raises(FeatureSizeError):
            controller.decide_action(np.zeros(5))

    def test_full_exploration_uses_all_actions(self, config):
        controller = NeuralController(config=config, input_size=4)
        controller.epsilon = 1.0
        controller.config.EPSILON_DECAY = 1.0
        seen = {controller.decide_action(FEATURES) for _ in range(100)}
        assert seen == set(ACTIONS)
        assert controller.explorations == 100

    def test_last_output_recorded(self, controller):
        controller.decide_action(FEATURES)
        assert controller.last_output.shape == (3,)
        assert controller.last_output.sum() == pytest.approx(1.0)


class TestEpsilon:
    """Test exploration decay."""

    def test_decays_per_decision(self, controller, config):
        controller.decide_action(FEATURES)
        assert controller.epsilon == pytest.approx(config.EPSILON_START * config.EPSILON_DECAY)

    def test_monotonic(self, controller):
        previous = controller.epsilon
        for _ in range(50):
            controller.decide_action(FEATURES)
            assert controller.epsilon <= previous
            previous = controller.epsilon

    def test_respects_floor(self, controller, config):
        for _ in range(2000):
            controller.decay_epsilon()
        assert controller.epsilon == config.EPSILON_END

    def test_reset_restores_epsilon(self, controller, config):
        for _ in range(10):
            controller.decide_action(FEATURES)
        controller.record_decision(FEATURES, UP)
        controller.reset()
        assert controller.epsilon == config.EPSILON_START
        assert len(controller.buffer) == 0


class TestTraining:
    """Test online learning."""

    def test_reinforces_recorded_action(self, controller):
        for _ in range(25):
            controller.record_decision(FEATURES, DOWN)

        before = controller.network.predict(FEATURES)
        trained = controller.train(1.0)
        after = controller.network.predict(FEATURES)

        assert trained == 25
        assert after[2] > before[2]

    def test_negative_reward_discourages_action(self, controller):
        for _ in range(25):
            controller.record_decision(FEATURES, DOWN)

        before = controller.network.predict(FEATURES)
        controller.train(-0.5)
        after = controller.network.predict(FEATURES)

        assert after[2] < before[2]

    def test_underrun_skips_training(self, controller):
        for _ in range(10):
            controller.record_decision(FEATURES, UP)
        before = controller.network.to_flat()

        assert controller.train(1.0) == 0
        assert np.array_equal(before, controller.network.to_flat())
        assert controller.training_sessions == 0

    def test_trains_on_recent_slice(self, controller, config):
        for _ in range(100):
            controller.record_decision(FEATURES, STAY)
        assert controller.train(1.0) == config.TRAINING_SLICE
        assert controller.samples_trained == config.TRAINING_SLICE

    def test_record_outcome_scored(self, controller, config):
        for _ in range(config.MIN_TRAINING_SAMPLES):
            controller.record_decision(FEATURES, UP)
        trained = controller.record_outcome(FEATURES, UP, did_score=True, did_concede=False)
        assert trained == config.MIN_TRAINING_SAMPLES + 1
        assert controller.reward_history == [config.REWARD_SCORED]

    def test_record_outcome_conceded(self, controller, config):
        for _ in range(config.MIN_TRAINING_SAMPLES):
            controller.record_decision(FEATURES, UP)
        controller.record_outcome(FEATURES, UP, did_score=False, did_concede=True)
        assert controller.reward_history == [config.REWARD_CONCEDED]

    def test_record_outcome_without_point_only_records(self, controller):
        before = controller.network.to_flat()
        assert controller.record_outcome(FEATURES, STAY, did_score=False, did_concede=False) == 0
        assert len(controller.buffer) == 1
        assert np.array_equal(before, controller.network.to_flat())

    def test_record_invalid_action(self, controller):
        with pytest.raises(ValueError):
            controller.record_decision(FEATURES, 3)
        assert len(controller.buffer) == 0

    def test_stats(self, controller):
        controller.decide_action(FEATURES)
        stats = controller.get_stats()
        assert stats['decisions'] == 1
        assert stats['buffer_size'] == 0
        assert stats['training_sessions'] == 0
        assert stats['policy'] == 'epsilon_greedy'
        assert set(stats) >= {'epsilon', 'explorations', 'samples_trained', 'avg_reward_factor'}

    def test_concurrent_decide_and_train(self, controller, rng):
        for _ in range(40):
            controller.record_decision(rng.uniform(-1, 1, size=4), DOWN)
        errors = []

        def decide():
            try:
                for _ in range(200):
                    output = controller.network.predict(FEATURES)
                    assert np.isfinite(output).all()
                    controller.decide_action(FEATURES)
            except Exception as e:
                errors.append(e)

        def train():
            try:
                for _ in range(20):
                    controller.train(1.0)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=decide), threading.Thread(target=train)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert controller.training_sessions == 20


class TestHeuristicBlend:
    """Test the trajectory-gated policy."""

    @pytest.fixture
    def blend(self):
        config = Config(HIDDEN_LAYERS=[8], SEED=0, POLICY='heuristic_blend')
        return NeuralController(config=config)

    def features(self, paddle_y, intercept_y=0.5, approaching=True):
        features = np.zeros(FEATURE_COUNT)
        features[IDX_PADDLE_Y] = paddle_y
        features[IDX_INTERCEPT_Y] = intercept_y
        features[IDX_APPROACHING] = 1.0 if approaching else 0.0
        return features

    def test_holds_when_aligned(self, blend):
        assert blend.decide_action(self.features(0.5, 0.5)) == STAY

    def test_intercept_below_never_moves_up(self, blend):
        assert blend.decide_action(self.features(0.2, 0.8)) in (DOWN, STAY)

    def test_intercept_above_never_moves_down(self, blend):
        assert blend.decide_action(self.features(0.8, 0.2)) in (UP, STAY)

    def test_returns_to_center_when_ball_leaves(self, blend):
        assert blend.decide_action(self.features(0.2, approaching=False)) == DOWN
        assert blend.decide_action(self.features(0.8, approaching=False)) == UP
        assert blend.decide_action(self.features(0.5, approaching=False)) == STAY

    def test_no_epsilon_decay(self, blend):
        blend.decide_action(self.features(0.5))
        assert blend.epsilon == blend.config.EPSILON_START


class TestOverflowGuard:
    """Updates that overflow the network are undone one sample at a time."""

    @pytest.fixture
    def runaway(self):
        # Step size large enough that every backward pass through a live unit overflows
        return NeuralController(Config(HIDDEN_LAYERS=[16, 8], SEED=0, LEARNING_RATE=1e150), input_size=4)

    def test_overflowing_updates_rolled_back(self, runaway, rng):
        for _ in range(25):
            runaway.record_decision(rng.uniform(0.1, 1.0, size=4), DOWN)

        trained = runaway.train(-0.5)

        assert runaway.rolled_back_samples > 0
        assert trained == 25 - runaway.rolled_back_samples
        assert runaway.samples_trained == trained
        assert runaway.training_sessions == 1
        assert runaway.network.is_finite()

    def test_outputs_stay_distributions(self, runaway, rng):
        for _ in range(25):
            runaway.record_decision(rng.uniform(0.1, 1.0, size=4), UP)
        for _ in range(5):
            runaway.train(-0.5)

        for _ in range(50):
            output = runaway.network.predict(rng.uniform(-1, 1, size=4))
            assert np.isfinite(output).all()
            assert output.sum() == pytest.approx(1.0)

    def test_normal_updates_untouched(self, controller):
        for _ in range(25):
            controller.record_decision(FEATURES, DOWN)
        assert controller.train(-0.5) == 25
        assert controller.rolled_back_samples == 0
        assert controller.get_stats()['rolled_back_samples'] == 0


class TestLongRunStability:
    """Self-play against the scripted paddle never corrupts the network."""

    MAX_TICKS = 15000
    SESSIONS = 10

    @pytest.mark.parametrize("policy", ['epsilon_greedy', 'heuristic_blend'])
    def test_weights_stay_finite(self, policy):
        config = Config(SEED=0, POLICY=policy)
        opponent = ScriptedOpponent('medium', rng=np.random.default_rng(0))
        game = QuantumPong(config, opponent=opponent, headless=True)
        controller = game.controller

        for _ in range(self.MAX_TICKS):
            features, _, done, _ = game.step()
            assert np.isfinite(controller.last_output).all()
            if done:
                game.reset()
            if controller.training_sessions >= self.SESSIONS:
                break

        assert controller.training_sessions > 0
        assert controller.network.is_finite()
        output = controller.network.predict(features)
        assert output.sum() == pytest.approx(1.0)
