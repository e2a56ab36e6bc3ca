"""
Training Buffer
===============

Bounded FIFO of (features, one-hot action) samples recorded by the neural
controller on every decision.

Unlike a DQN replay buffer there is no random sampling: training always
replays the most recent samples in the order they were recorded. The
buffer is a circular array, so once full the oldest sample is overwritten
first.
"""

from typing import List, Tuple

import numpy as np


class TrainingBuffer:
    """
    Fixed-size circular store of training samples.

    Storage is two contiguous numpy arrays: features (capacity x feature_size)
    and one-hot targets (capacity x action_size).

    Example:
        >>> buffer = TrainingBuffer(capacity=200, feature_size=20)
        >>> buffer.push(features, action_index=2)
        >>> recent = buffer.recent(30)
    """

    def __init__(self, capacity: int, feature_size: int, action_size: int = 3):
        if capacity <= 0:
            raise ValueError(f"Buffer capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.feature_size = feature_size
        self.action_size = action_size

        self.features = np.zeros((capacity, feature_size), dtype=np.float64)
        self.targets = np.zeros((capacity, action_size), dtype=np.float64)
        self._size = 0
        self._position = 0  # Next write slot
        self.total_pushed = 0

    def push(self, features: np.ndarray, action_index: int) -> None:
        """
        Record a sample. action_index selects the hot entry of the target.

        Raises:
            ValueError: if the features have the wrong length or the index
                is outside the action space
        """
        features = np.asarray(features, dtype=np.float64)
        if features.shape != (self.feature_size,):
            raise ValueError(
                f"Expected features of length {self.feature_size}, got shape {features.shape}"
            )
        if not 0 <= action_index < self.action_size:
            raise ValueError(f"Action index {action_index} outside [0, {self.action_size})")

        np.copyto(self.features[self._position], features)
        self.targets[self._position] = 0.0
        self.targets[self._position, action_index] = 1.0

        self._position = (self._position + 1) % self.capacity
        self._size = min(self._size + 1, self.capacity)
        self.total_pushed += 1

    def _ordered_indices(self) -> np.ndarray:
        """Slot indices from oldest to newest."""
        if self._size < self.capacity:
            return np.arange(self._size)
        return (np.arange(self.capacity) + self._position) % self.capacity

    def recent(self, count: int) -> List[Tuple[np.ndarray, np.ndarray]]:
        """The last `count` samples, oldest first (copies)."""
        indices = self._ordered_indices()
        if count < len(indices):
            indices = indices[len(indices) - count:]
        return [(self.features[i].copy(), self.targets[i].copy()) for i in indices]

    def samples(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        """All stored samples, oldest first."""
        return self.recent(self._size)

    def clear(self) -> None:
        self._size = 0
        self._position = 0

    def is_ready(self, min_size: int) -> bool:
        return self._size >= min_size

    def __len__(self) -> int:
        return self._size

    def __repr__(self) -> str:
        return f"TrainingBuffer(size={self._size}/{self.capacity})"
