"""
Tests for the training buffer.

These tests verify:
    - Push stores features and one-hot targets
    - FIFO eviction once full
    - recent() ordering
    - Input validation
"""

import pytest
import numpy as np
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from quantum_pong.ai.training_buffer import TrainingBuffer


@pytest.fixture
def buffer():
    return TrainingBuffer(capacity=200, feature_size=4)


def sample(i):
    return np.array([float(i), 0.0, 0.0, 0.0])


class TestBufferBasics:
    """Test push and length."""

    def test_starts_empty(self, buffer):
        assert len(buffer) == 0
        assert buffer.samples() == []
        assert not buffer.is_ready(1)

    def test_push_stores_one_hot(self, buffer):
        buffer.push(sample(7), action_index=2)
        features, target = buffer.samples()[0]
        assert np.array_equal(features, sample(7))
        assert np.array_equal(target, np.array([0.0, 0.0, 1.0]))

    def test_is_ready(self, buffer):
        for i in range(20):
            buffer.push(sample(i), 1)
        assert buffer.is_ready(20)
        assert not buffer.is_ready(21)

    def test_clear(self, buffer):
        for i in range(5):
            buffer.push(sample(i), 0)
        buffer.clear()
        assert len(buffer) == 0
        assert buffer.total_pushed == 5

    def test_repr(self, buffer):
        buffer.push(sample(0), 0)
        assert repr(buffer) == "TrainingBuffer(size=1/200)"

    def test_zero_capacity_rejected(self):
        with pytest.raises(ValueError):
            TrainingBuffer(capacity=0, feature_size=4)


class TestBufferEviction:
    """Test bounded FIFO behavior."""

    def test_keeps_last_capacity_samples(self, buffer):
        for i in range(250):
            buffer.push(sample(i), i % 3)

        assert len(buffer) == 200
        assert buffer.total_pushed == 250

        stored = [int(features[0]) for features, _ in buffer.samples()]
        assert stored == list(range(50, 250))

    def test_targets_follow_features(self, buffer):
        for i in range(250):
            buffer.push(sample(i), i % 3)
        for features, target in buffer.samples():
            assert int(np.argmax(target)) == int(features[0]) % 3
            assert target.sum() == 1.0

    def test_recent_oldest_first(self, buffer):
        for i in range(250):
            buffer.push(sample(i), 0)
        recent = [int(features[0]) for features, _ in buffer.recent(30)]
        assert recent == list(range(220, 250))

    def test_recent_more_than_stored(self, buffer):
        for i in range(10):
            buffer.push(sample(i), 0)
        assert len(buffer.recent(30)) == 10

    def test_recent_returns_copies(self, buffer):
        buffer.push(sample(1), 0)
        features, target = buffer.recent(1)[0]
        features[0] = 99.0
        target[0] = 0.0
        stored_features, stored_target = buffer.recent(1)[0]
        assert stored_features[0] == 1.0
        assert stored_target[0] == 1.0

    def test_push_after_clear_starts_over(self, buffer):
        for i in range(250):
            buffer.push(sample(i), 0)
        buffer.clear()
        buffer.push(sample(1000), 1)
        assert [int(f[0]) for f, _ in buffer.samples()] == [1000]


class TestBufferValidation:
    """Test input checks."""

    @pytest.mark.parametrize("features", [np.zeros(3), np.zeros(5), np.zeros((4, 1))])
    def test_wrong_feature_shape(self, buffer, features):
        with pytest.raises(ValueError):
            buffer.push(features, 0)

    @pytest.mark.parametrize("index", [-1, 3, 10])
    def test_bad_action_index(self, buffer, index):
        with pytest.raises(ValueError):
            buffer.push(sample(0), index)
        assert len(buffer) == 0
