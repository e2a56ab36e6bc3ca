"""
Quantum Pong - Source Package
=============================

Pong with a self-training neural-network opponent.

Modules:
    physics/ - Vector math, force-integrating bodies, collision resolution
    ai/      - Hand-rolled neural network, training buffer and controller
    game/    - Match orchestrator, entities, effects and cosmetic quantum layer
    utils/   - Logging
"""

__version__ = "1.0.0"
