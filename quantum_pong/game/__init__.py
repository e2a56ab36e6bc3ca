"""
Game Module
===========

Match orchestration for Quantum Pong.

Classes:
    QuantumPong      - The match orchestrator (implements BaseGame)
    BaseGame         - Abstract game interface
    ScriptedOpponent - Rule-based paddle with difficulty presets
"""

from .base_game import BaseGame
from .pong import QuantumPong
from .opponent import ScriptedOpponent

__all__ = ['BaseGame', 'QuantumPong', 'ScriptedOpponent']
