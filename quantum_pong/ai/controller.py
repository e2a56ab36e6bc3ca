"""
Neural Controller
=================

The AI paddle's brain: a small policy network that picks UP / STAY / DOWN
from the encoded match state and trains online from scoring outcomes.

Decision loop (once per tick):
    1. features = encode_features(...)
    2. action = controller.decide_action(features)        -> -1, 0 or +1
    3. controller.record_decision(features, action)       (normal tick)
       controller.record_outcome(features, action, ...)  (scoring tick)

Learning rule:
    On every scoring event the most recent samples are replayed through the
    network. For each sample the output error is (one_hot - output) scaled
    by a reward factor (+1.0 when the AI scored, -0.5 when it conceded),
    and pushed backwards through the layers by NeuralNetwork.backpropagate.
    A positive factor reinforces the recorded actions, a negative one
    pushes the policy away from them.
    Any single update that overflows the network is rolled back.

Policies:
    epsilon_greedy  - random action with probability epsilon, otherwise the
                      network's argmax. Epsilon decays after each decision.
    heuristic_blend - the trajectory predictor proposes a direction and the
                      network only gets to veto it (move or hold).
"""

import threading
from typing import Optional, List, Dict, Any

import numpy as np

from .network import NeuralNetwork
from .training_buffer import TrainingBuffer
from .features import IDX_PADDLE_Y, IDX_INTERCEPT_Y, IDX_APPROACHING
from ..utils.logger import get_logger

import sys
sys.path.append('../..')
from config import Config

logger = get_logger(__name__)


# Network output index -> paddle direction
ACTIONS = (-1, 0, 1)
UP, STAY, DOWN = ACTIONS


def action_to_index(action: int) -> int:
    """Map a paddle direction (-1, 0, +1) to its output index."""
    if action not in ACTIONS:
        raise ValueError(f"Invalid action {action!r}; expected one of {ACTIONS}")
    return action + 1


def index_to_action(index: int) -> int:
    if not 0 <= index < len(ACTIONS):
        raise ValueError(f"Invalid action index {index!r}")
    return ACTIONS[index]


class NeuralController:
    """
    Online-learning policy for the AI paddle.

    Inference (decide_action) and training (train / record_outcome) share a
    re-entrant lock, so a forward pass never observes half-updated weights.

    Attributes:
        network: The policy network
        buffer: Recent (features, one-hot action) samples
        epsilon: Current exploration rate
        policy: 'epsilon_greedy' or 'heuristic_blend'

    Example:
        >>> controller = NeuralController(config=Config())
        >>> action = controller.decide_action(features)
        >>> controller.record_outcome(features, action, did_score=True, did_concede=False)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        input_size: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
        network: Optional[NeuralNetwork] = None,
    ):
        """
        Args:
            config: Configuration object
            input_size: Feature vector length (defaults to config.STATE_SIZE)
            rng: Random generator for initialization and exploration
            network: Pre-built network to wrap instead of a fresh one
        """
        self.config = config or Config()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.SEED)
        self.input_size = input_size or self.config.STATE_SIZE
        self.policy = self.config.POLICY

        if network is not None:
            self.network = network
            self.input_size = network.input_size
        else:
            self.network = NeuralNetwork(
                self.input_size,
                self.config.HIDDEN_LAYERS,
                self.config.ACTION_SIZE,
                rng=self.rng,
            )

        self.buffer = TrainingBuffer(
            self.config.TRAINING_BUFFER_SIZE,
            self.input_size,
            self.config.ACTION_SIZE,
        )
        self.epsilon = self.config.EPSILON_START

        self._lock = threading.RLock()

        # Stats
        self.decisions = 0
        self.explorations = 0
        self.training_sessions = 0
        self.samples_trained = 0
        self.rolled_back_samples = 0
        self.reward_history: List[float] = []
        self.last_output: Optional[np.ndarray] = None
        self._last_action_explored = False

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def decide_action(self, features: np.ndarray, explore: bool = True) -> int:
        """
        Choose a paddle direction.

        Never touches the network's weights. With explore=False the result
        is a pure function of the weights and the input.

        Args:
            features: Encoded state (length = input_size)
            explore: Allow epsilon-greedy exploration (and its decay)

        Returns:
            -1 (up), 0 (stay) or +1 (down)

        Raises:
            FeatureSizeError: if the feature vector has the wrong length
        """
        with self._lock:
            output, _ = self.network.forward(features)
            self.last_output = output
            self.decisions += 1
            self._last_action_explored = False

            if self.policy == 'heuristic_blend':
                return self._heuristic_blend(np.asarray(features), output)

            if explore and self.rng.random() < self.epsilon:
                self._last_action_explored = True
                self.explorations += 1
                index = int(self.rng.integers(len(ACTIONS)))
            else:
                index = int(np.argmax(output))

            if explore:
                self.decay_epsilon()

            return index_to_action(index)

    def _heuristic_blend(self, features: np.ndarray, output: np.ndarray) -> int:
        """Trajectory predictor proposes, network confirms."""
        height = self.config.SCREEN_HEIGHT
        paddle_y = features[IDX_PADDLE_Y]

        if features[IDX_APPROACHING] > 0.5:
            diff = features[IDX_INTERCEPT_Y] - paddle_y
            if abs(diff) < self.config.BLEND_DEAD_ZONE / height:
                return STAY
            if diff > 0:
                return DOWN if output[2] > output[0] else STAY
            return UP if output[0] > output[2] else STAY

        # Ball moving away: drift back to center
        diff = 0.5 - paddle_y
        if abs(diff) < self.config.BLEND_CENTER_DEAD_ZONE / height:
            return STAY
        return DOWN if diff > 0 else UP

    def decay_epsilon(self) -> None:
        self.epsilon = max(self.config.EPSILON_END, self.epsilon * self.config.EPSILON_DECAY)

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def record_decision(self, features: np.ndarray, action: int) -> None:
        """Store a (features, action) sample in the training buffer."""
        index = action_to_index(action)
        with self._lock:
            self.buffer.push(features, index)

    def record_outcome(
        self,
        features: np.ndarray,
        chosen_action: int,
        did_score: bool,
        did_concede: bool,
    ) -> int:
        """
        Record the decision made on a scoring tick and learn from the result.

        Returns:
            Number of samples trained on (0 when nothing was learned)
        """
        self.record_decision(features, chosen_action)

        if did_score:
            reward_factor = self.config.REWARD_SCORED
        elif did_concede:
            reward_factor = self.config.REWARD_CONCEDED
        else:
            return 0

        return self.train(reward_factor)

    def train(self, reward_factor: float) -> int:
        """
        Replay the most recent samples with a reward-scaled error.

        Silently skipped while the buffer holds fewer than
        MIN_TRAINING_SAMPLES samples. An update that leaves a weight or an
        activation of its own sample non-finite is undone and not counted.

        Returns:
            Number of samples trained on
        """
        with self._lock:
            if not self.buffer.is_ready(self.config.MIN_TRAINING_SAMPLES):
                logger.debug(
                    f"Training skipped: {len(self.buffer)}/{self.config.MIN_TRAINING_SAMPLES} samples"
                )
                return 0

            recent = self.buffer.recent(self.config.TRAINING_SLICE)
            applied = 0
            with np.errstate(over='ignore', invalid='ignore'):
                for features, target in recent:
                    output, activations = self.network.forward(features)
                    error = (target - output) * reward_factor
                    snapshot = self.network.to_flat()
                    self.network.backpropagate(activations, error, self.config.LEARNING_RATE)
                    if self.network.is_finite(features):
                        applied += 1
                    else:
                        self.network.load_flat(snapshot)

            rolled_back = len(recent) - applied
            if rolled_back:
                self.rolled_back_samples += rolled_back
                logger.warning(
                    f"Rolled back {rolled_back}/{len(recent)} updates that overflowed the network "
                    f"(reward {reward_factor:+.2f})"
                )

            self.training_sessions += 1
            self.samples_trained += applied
            self.reward_history.append(reward_factor)
            if len(self.reward_history) > self.config.PLOT_HISTORY_LENGTH:
                self.reward_history.pop(0)

            logger.debug(
                f"Trained on {applied} samples (reward {reward_factor:+.2f}, "
                f"session {self.training_sessions})"
            )
            return applied

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Forget recorded samples and restart exploration. Weights are kept."""
        with self._lock:
            self.buffer.clear()
            self.epsilon = self.config.EPSILON_START

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            avg_reward = float(np.mean(self.reward_history)) if self.reward_history else 0.0
            return {
                'buffer_size': len(self.buffer),
                'epsilon': self.epsilon,
                'decisions': self.decisions,
                'explorations': self.explorations,
                'training_sessions': self.training_sessions,
                'samples_trained': self.samples_trained,
                'rolled_back_samples': self.rolled_back_samples,
                'avg_reward_factor': avg_reward,
                'policy': self.policy,
            }
