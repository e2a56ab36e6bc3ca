"""
Tests for configuration validation.
"""

import pytest
import torch
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Config


class TestConfigDefaults:
    """Test default values."""

    def test_learning_defaults(self):
        config = Config()
        assert config.LEARNING_RATE == 0.01
        assert config.TRAINING_BUFFER_SIZE == 200
        assert config.MIN_TRAINING_SAMPLES == 20
        assert config.TRAINING_SLICE == 30
        assert config.REWARD_SCORED == 1.0
        assert config.REWARD_CONCEDED == -0.5

    def test_network_shape(self):
        config = Config()
        assert config.STATE_SIZE == 20
        assert config.ACTION_SIZE == 3
        assert config.HIDDEN_LAYERS == [40, 40, 20]

    def test_hidden_layers_not_shared(self):
        a = Config()
        b = Config()
        a.HIDDEN_LAYERS.append(5)
        assert b.HIDDEN_LAYERS == [40, 40, 20]

    def test_device_is_cpu(self):
        assert Config().DEVICE == torch.device('cpu')


class TestConfigValidation:
    """Test __post_init__ checks."""

    @pytest.mark.parametrize("overrides", [
        {'LEARNING_RATE': 0},
        {'ACTION_SIZE': 4},
        {'HIDDEN_LAYERS': [16, 0]},
        {'MIN_TRAINING_SAMPLES': 300},
        {'TRAINING_SLICE': 0},
        {'EPSILON_START': 0.01, 'EPSILON_END': 0.5},
        {'EPSILON_DECAY': 1.5},
        {'POLICY': 'random'},
        {'BALL_MIN_SPEED': 30.0},
        {'WIN_SCORE': 0},
        {'BALL_RADIUS_MIN': 25.0},
        {'MAX_BALLS': 0},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(AssertionError):
            Config(**overrides)

    def test_heuristic_blend_accepted(self):
        assert Config(POLICY='heuristic_blend').POLICY == 'heuristic_blend'
