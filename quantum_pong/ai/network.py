"""
Feedforward Policy Network
==========================

A small dense network written directly on numpy arrays, with a manual
forward pass and a manual backward pass. No autograd and no optimizer:
the controller's learning rule is a reward-scaled error signal pushed
through the layers by hand.

Architecture:
    Input -> [Dense + ReLU] x N -> Dense + Softmax (3 actions)

Forward pass:
    z_k = a_{k-1} @ W_k + b_k
    a_k = relu(z_k)            hidden layers
    a_k = softmax(z_k)         output layer

Backward pass, given an output error vector e (target - output, scaled):
    for k = last .. first:
        W_k += lr * outer(a_{k-1}, e)
        b_k += lr * e
        e    = W_k @ e                 (through the just-updated weights)
        e[a_{k-1} <= 0] = 0            if layer k-1 is ReLU

Weights are stored with rows = inputs and columns = units.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Dict

import numpy as np


class Activation(str, Enum):
    """Layer activation kinds."""
    RELU = 'relu'
    SOFTMAX = 'softmax'


class FeatureSizeError(ValueError):
    """Raised when an input vector does not match the network's input size."""


class TopologyMismatchError(ValueError):
    """Raised when saved weights do not fit the network's topology."""


def relu(x: np.ndarray) -> np.ndarray:
    return np.maximum(0.0, x)


def softmax(x: np.ndarray) -> np.ndarray:
    """
    Numerically stable softmax (max logit subtracted before exp).

    Overflowed logits are clamped to the largest finite float first, so the
    result is always a distribution.
    """
    x = np.nan_to_num(x, nan=0.0)
    with np.errstate(over='ignore'):
        shifted = x - np.max(x)
    exps = np.exp(shifted)
    return exps / np.sum(exps)


_ACTIVATION_FNS = {
    Activation.RELU: relu,
    Activation.SOFTMAX: softmax,
}


@dataclass
class LayerSpec:
    """Serialized form of a layer: (weights, biases, activation)."""
    weights: np.ndarray
    biases: np.ndarray
    activation: Activation

    def __iter__(self):
        yield self.weights
        yield self.biases
        yield self.activation


class DenseLayer:
    """Fully connected layer owning its weight matrix and bias vector."""

    def __init__(self, weights: np.ndarray, biases: np.ndarray, activation: Activation):
        if weights.ndim != 2 or biases.shape != (weights.shape[1],):
            raise TopologyMismatchError(
                f"Layer shapes do not line up: weights {weights.shape}, biases {biases.shape}"
            )
        self.weights = weights.astype(np.float64, copy=True)
        self.biases = biases.astype(np.float64, copy=True)
        self.activation = Activation(activation)
        self._activation_fn = _ACTIVATION_FNS[self.activation]

    @classmethod
    def initialize(
        cls,
        fan_in: int,
        units: int,
        activation: Activation,
        rng: np.random.Generator,
    ) -> 'DenseLayer':
        """Xavier-style init: uniform(-1, 1) * sqrt(2 / fan_in), small biases."""
        scale = np.sqrt(2.0 / fan_in)
        weights = rng.uniform(-1.0, 1.0, size=(fan_in, units)) * scale
        biases = rng.uniform(-1.0, 1.0, size=units) * 0.1
        return cls(weights, biases, activation)

    @property
    def input_size(self) -> int:
        return self.weights.shape[0]

    @property
    def units(self) -> int:
        return self.weights.shape[1]

    def forward(self, inputs: np.ndarray) -> np.ndarray:
        return self._activation_fn(inputs @ self.weights + self.biases)


class NeuralNetwork:
    """
    Dense ReLU network with a softmax action head.

    Attributes:
        layers: Ordered list of DenseLayer
        input_size: Expected feature vector length
        output_size: Number of actions

    Example:
        >>> net = NeuralNetwork(input_size=4, hidden_sizes=[16, 8])
        >>> output, activations = net.forward(np.array([0.5, 0.0, 0.5, 0.5]))
        >>> output.shape
        (3,)
    """

    def __init__(
        self,
        input_size: int,
        hidden_sizes: Sequence[int],
        output_size: int = 3,
        rng: Optional[np.random.Generator] = None,
        layers: Optional[List[DenseLayer]] = None,
    ):
        self.input_size = input_size
        self.hidden_sizes = list(hidden_sizes)
        self.output_size = output_size

        if layers is not None:
            self.layers = layers
            self._check_layers()
            return

        rng = rng if rng is not None else np.random.default_rng()
        sizes = [input_size] + self.hidden_sizes + [output_size]
        self.layers: List[DenseLayer] = []
        for i in range(len(sizes) - 1):
            is_output = i == len(sizes) - 2
            activation = Activation.SOFTMAX if is_output else Activation.RELU
            self.layers.append(DenseLayer.initialize(sizes[i], sizes[i + 1], activation, rng))

    def _check_layers(self) -> None:
        """Enforce the chaining invariants of the layer list."""
        if not self.layers:
            raise TopologyMismatchError("Network needs at least one layer")
        if self.layers[0].input_size != self.input_size:
            raise TopologyMismatchError(
                f"First layer expects {self.layers[0].input_size} inputs, "
                f"network declares {self.input_size}"
            )
        for prev, layer in zip(self.layers, self.layers[1:]):
            if layer.input_size != prev.units:
                raise TopologyMismatchError(
                    f"Layer expects {layer.input_size} inputs but previous layer has {prev.units} units"
                )
        if self.layers[-1].units != self.output_size:
            raise TopologyMismatchError(
                f"Output layer has {self.layers[-1].units} units, expected {self.output_size}"
            )
        if self.layers[-1].activation is not Activation.SOFTMAX:
            raise TopologyMismatchError("Output layer must use softmax")

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def forward(self, features: Sequence[float]) -> Tuple[np.ndarray, List[np.ndarray]]:
        """
        Run the network.

        Returns:
            (output, activations) where activations[0] is the input and
            activations[k + 1] is the output of layer k.

        Raises:
            FeatureSizeError: if the input length is wrong
        """
        x = np.asarray(features, dtype=np.float64)
        if x.shape != (self.input_size,):
            raise FeatureSizeError(
                f"Expected feature vector of length {self.input_size}, got shape {x.shape}"
            )

        activations = [x]
        for layer in self.layers:
            x = layer.forward(x)
            activations.append(x)
        return x, activations

    def predict(self, features: Sequence[float]) -> np.ndarray:
        """Action distribution only."""
        output, _ = self.forward(features)
        return output

    # ------------------------------------------------------------------
    # Training
    # ------------------------------------------------------------------

    def backpropagate(
        self,
        activations: List[np.ndarray],
        output_error: np.ndarray,
        learning_rate: float,
    ) -> None:
        """
        Apply one reward-scaled update in place.

        Args:
            activations: Output of forward() for the sample
            output_error: Error at the output layer, (target - output) * reward
            learning_rate: Step size
        """
        error = np.asarray(output_error, dtype=np.float64)
        if error.shape != (self.output_size,):
            raise ValueError(f"Output error must have shape ({self.output_size},), got {error.shape}")

        for k in range(len(self.layers) - 1, -1, -1):
            layer = self.layers[k]
            prev_activation = activations[k]

            layer.weights += learning_rate * np.outer(prev_activation, error)
            layer.biases += learning_rate * error

            if k == 0:
                break

            error = layer.weights @ error
            if self.layers[k - 1].activation is Activation.RELU:
                error = np.where(prev_activation > 0, error, 0.0)

    def is_finite(self, features: Optional[Sequence[float]] = None) -> bool:
        """
        True when every parameter is finite and, given `features`, every
        pre-activation of a forward pass on them is finite too.
        """
        for layer in self.layers:
            if not (np.isfinite(layer.weights).all() and np.isfinite(layer.biases).all()):
                return False
        if features is None:
            return True

        x = np.asarray(features, dtype=np.float64)
        with np.errstate(over='ignore', invalid='ignore'):
            for layer in self.layers:
                z = x @ layer.weights + layer.biases
                if not np.isfinite(z).all():
                    return False
                x = layer._activation_fn(z)
        return True

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def topology(self) -> List[Tuple[int, int, str]]:
        """(inputs, units, activation) per layer."""
        return [(layer.input_size, layer.units, layer.activation.value) for layer in self.layers]

    def layer_specs(self) -> List[LayerSpec]:
        """Ordered (weights, biases, activation) triples, copied."""
        return [
            LayerSpec(layer.weights.copy(), layer.biases.copy(), layer.activation)
            for layer in self.layers
        ]

    def parameter_count(self) -> int:
        return sum(layer.weights.size + layer.biases.size for layer in self.layers)

    def to_flat(self) -> np.ndarray:
        """All parameters as one array: per layer, weights (row-major) then biases."""
        parts = []
        for layer in self.layers:
            parts.append(layer.weights.ravel())
            parts.append(layer.biases)
        return np.concatenate(parts)

    def load_flat(self, flat: Sequence[float]) -> None:
        """
        Restore parameters from to_flat() output into this topology.

        Raises:
            TopologyMismatchError: if the array length does not match exactly
        """
        flat = np.asarray(flat, dtype=np.float64)
        expected = self.parameter_count()
        if flat.ndim != 1 or flat.size != expected:
            raise TopologyMismatchError(
                f"Flat parameter array has {flat.size} values, topology needs {expected}"
            )

        offset = 0
        for layer in self.layers:
            n_weights = layer.weights.size
            layer.weights = flat[offset:offset + n_weights].reshape(layer.weights.shape).copy()
            offset += n_weights
            n_biases = layer.biases.size
            layer.biases = flat[offset:offset + n_biases].copy()
            offset += n_biases

    def load_layer_specs(self, specs: Sequence[LayerSpec]) -> None:
        """
        Restore parameters from layer specs with the same topology.

        Raises:
            TopologyMismatchError: on any shape or activation difference
        """
        if len(specs) != len(self.layers):
            raise TopologyMismatchError(
                f"Saved model has {len(specs)} layers, network has {len(self.layers)}"
            )
        for i, (layer, spec) in enumerate(zip(self.layers, specs)):
            weights, biases, activation = spec
            weights = np.asarray(weights, dtype=np.float64)
            biases = np.asarray(biases, dtype=np.float64)
            if weights.shape != layer.weights.shape or biases.shape != layer.biases.shape:
                raise TopologyMismatchError(
                    f"Layer {i}: saved shapes {weights.shape}/{biases.shape}, "
                    f"expected {layer.weights.shape}/{layer.biases.shape}"
                )
            if Activation(activation) is not layer.activation:
                raise TopologyMismatchError(
                    f"Layer {i}: saved activation {activation}, expected {layer.activation.value}"
                )
        for layer, spec in zip(self.layers, specs):
            layer.weights = np.array(spec.weights, dtype=np.float64)
            layer.biases = np.array(spec.biases, dtype=np.float64)

    @classmethod
    def from_layer_specs(cls, specs: Sequence[LayerSpec]) -> 'NeuralNetwork':
        layers = [DenseLayer(np.asarray(w), np.asarray(b), Activation(a)) for w, b, a in specs]
        return cls(
            input_size=layers[0].input_size,
            hidden_sizes=[layer.units for layer in layers[:-1]],
            output_size=layers[-1].units,
            layers=layers,
        )

    @classmethod
    def from_flat(
        cls,
        flat: Sequence[float],
        input_size: int,
        hidden_sizes: Sequence[int],
        output_size: int = 3,
    ) -> 'NeuralNetwork':
        net = cls(input_size, hidden_sizes, output_size, rng=np.random.default_rng(0))
        net.load_flat(flat)
        return net

    def copy(self) -> 'NeuralNetwork':
        return NeuralNetwork.from_layer_specs(self.layer_specs())

    def get_layer_info(self) -> List[Dict]:
        """Layer metadata for logging and visualization."""
        info = [{'name': 'Input', 'neurons': self.input_size, 'type': 'input'}]
        for i, layer in enumerate(self.layers[:-1]):
            info.append({'name': f'Hidden {i + 1}', 'neurons': layer.units, 'type': 'hidden'})
        info.append({'name': 'Output', 'neurons': self.output_size, 'type': 'output'})
        return info
