"""
Model Persistence
=================

Saves and restores the neural controller with torch.save / torch.load.

Checkpoint layout (a plain dict, loadable with weights_only=True):
    format_version   int
    input_size       int
    hidden_sizes     list[int]
    output_size      int
    layers           list of {'weights': Tensor, 'biases': Tensor, 'activation': str}
    epsilon          float
    training_sessions int
    timestamp        ISO-8601 string

A checkpoint only loads into a controller with the identical topology.
Anything else raises TopologyMismatchError; nothing is truncated or padded.
"""

import os
import pickle
from datetime import datetime
from typing import Any, Dict, Optional

import torch

from .controller import NeuralController
from .network import LayerSpec, TopologyMismatchError
from ..utils.logger import get_logger, log_model_event

import sys
sys.path.append('../..')
from config import Config

logger = get_logger(__name__)

FORMAT_VERSION = 1


def _build_checkpoint(controller: NeuralController) -> Dict[str, Any]:
    network = controller.network
    return {
        'format_version': FORMAT_VERSION,
        'input_size': network.input_size,
        'hidden_sizes': list(network.hidden_sizes),
        'output_size': network.output_size,
        'layers': [
            {
                'weights': torch.from_numpy(spec.weights),
                'biases': torch.from_numpy(spec.biases),
                'activation': spec.activation.value,
            }
            for spec in network.layer_specs()
        ],
        'epsilon': float(controller.epsilon),
        'training_sessions': int(controller.training_sessions),
        'timestamp': datetime.now().isoformat(),
    }


def save_model(controller: NeuralController, path: str) -> None:
    """
    Write the controller's weights and exploration state to `path`.

    Raises:
        OSError: if the file cannot be written (logged first)
    """
    dir_path = os.path.dirname(path)
    if dir_path:
        os.makedirs(dir_path, exist_ok=True)

    with controller._lock:
        checkpoint = _build_checkpoint(controller)

    try:
        torch.save(checkpoint, path)
    except OSError as e:
        logger.error(f"Failed to save model to {path}: {e}")
        raise

    log_model_event(
        'save', path,
        epsilon=f"{controller.epsilon:.4f}",
        trained=controller.training_sessions,
    )


def _layer_spec(index: int, layer: Any) -> LayerSpec:
    """Unpack one saved layer, rejecting anything that is not a weights/biases pair."""
    if not isinstance(layer, dict):
        raise TopologyMismatchError(f"Layer {index} is a {type(layer).__name__}, expected a dict")
    weights = layer.get('weights')
    biases = layer.get('biases')
    if not isinstance(weights, torch.Tensor) or not isinstance(biases, torch.Tensor):
        raise TopologyMismatchError(f"Layer {index} is missing its weight or bias tensor")
    return LayerSpec(
        weights.detach().cpu().numpy(),
        biases.detach().cpu().numpy(),
        layer.get('activation'),
    )


def load_model(controller: NeuralController, path: str, config: Optional[Config] = None) -> Dict[str, Any]:
    """
    Restore a checkpoint into an existing controller.

    The controller is only modified once the whole checkpoint has been
    validated against its topology.

    Returns:
        The raw checkpoint dict

    Raises:
        FileNotFoundError: if `path` does not exist
        TopologyMismatchError: if the saved network has a different shape
    """
    config = config or controller.config
    if not os.path.exists(path):
        raise FileNotFoundError(f"Model file not found: {path}")

    checkpoint = torch.load(path, map_location=config.DEVICE, weights_only=True)
    if not isinstance(checkpoint, dict):
        raise TopologyMismatchError(
            f"{path} holds a {type(checkpoint).__name__}, not a model checkpoint"
        )

    network = controller.network
    saved_input = checkpoint.get('input_size')
    saved_output = checkpoint.get('output_size')
    if saved_input != network.input_size or saved_output != network.output_size:
        raise TopologyMismatchError(
            f"Saved model is {saved_input} -> {saved_output}, "
            f"controller expects {network.input_size} -> {network.output_size}"
        )

    layers = checkpoint.get('layers')
    if not isinstance(layers, (list, tuple)):
        raise TopologyMismatchError(f"Checkpoint layers must be a list, got {type(layers).__name__}")
    specs = [_layer_spec(i, layer) for i, layer in enumerate(layers)]
    epsilon = float(checkpoint.get('epsilon', controller.epsilon))
    training_sessions = int(checkpoint.get('training_sessions', 0))

    with controller._lock:
        network.load_layer_specs(specs)
        controller.epsilon = epsilon
        controller.training_sessions = training_sessions

    log_model_event('load', path, epsilon=f"{controller.epsilon:.4f}")
    return checkpoint


def load_or_create(config: Optional[Config] = None, path: Optional[str] = None, **controller_kwargs) -> NeuralController:
    """
    Load the controller from `path`, or start fresh if that is impossible.

    Missing files, unreadable checkpoints and topology mismatches are all
    logged and answered with a freshly initialized controller.
    """
    config = config or Config()
    controller = NeuralController(config=config, **controller_kwargs)

    if path is None:
        path = os.path.join(config.MODEL_DIR, config.MODEL_FILENAME)

    if not os.path.exists(path):
        logger.info(f"No saved model at {path}, starting with a fresh network")
        return controller

    try:
        load_model(controller, path, config)
    except (OSError, EOFError, ValueError, TypeError, KeyError, RuntimeError, pickle.UnpicklingError) as e:
        logger.warning(f"Could not load model from {path} ({e}). Starting fresh training.")
        log_model_event('fallback', path, reason=type(e).__name__)
        return NeuralController(config=config, **controller_kwargs)

    return controller
