"""
AI Module
=========

Online-learning paddle controller built on a hand-rolled numpy network.

Classes:
    NeuralNetwork    - Dense ReLU/softmax network with manual backprop
    TrainingBuffer   - Bounded FIFO of (features, one-hot action) samples
    NeuralController - decide_action / record_outcome policy
    Trainer          - Headless self-play loop
"""

from .network import NeuralNetwork, FeatureSizeError, TopologyMismatchError
from .training_buffer import TrainingBuffer
from .controller import NeuralController
from .persistence import save_model, load_model, load_or_create
from .trainer import Trainer

__all__ = [
    'NeuralNetwork',
    'FeatureSizeError',
    'TopologyMismatchError',
    'TrainingBuffer',
    'NeuralController',
    'save_model',
    'load_model',
    'load_or_create',
    'Trainer',
]
