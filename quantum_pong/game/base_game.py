"""
Base Game Interface
===================

Abstract base class for a match that a controller or trainer can drive
tick by tick. The headless trainer and the pygame front end only talk to
this interface.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple
import numpy as np


class BaseGame(ABC):
    """
    Abstract base class for games.

    Properties:
        state_size: int - Dimension of the state vector
        action_size: int - Number of possible actions

    Methods:
        reset() -> np.ndarray
            Start a new match, return the state vector

        step(action) -> Tuple[np.ndarray, float, bool, dict]
            Advance one tick, return (next_state, reward, done, info)

        render(screen) -> None
            Draw the match to a pygame surface

        get_state() -> np.ndarray
            Current state vector
    """

    @property
    @abstractmethod
    def state_size(self) -> int:
        """Return the dimension of the state vector."""
        pass

    @property
    @abstractmethod
    def action_size(self) -> int:
        """Return the number of possible actions."""
        pass

    @abstractmethod
    def reset(self) -> np.ndarray:
        """
        Reset the game to initial state.

        Returns:
            np.ndarray: Initial state vector
        """
        pass

    @abstractmethod
    def step(self, action: Optional[int]) -> Tuple[np.ndarray, float, bool, dict]:
        """
        Execute one game tick with the given action.

        Args:
            action: Player paddle direction (-1, 0, +1), or None to let the
                scripted opponent play that side

        Returns:
            Tuple containing:
                - next_state (np.ndarray): State after the tick
                - reward (float): Reward from the AI paddle's perspective
                - done (bool): True if the match is over
                - info (dict): Scores, rally, events of this tick
        """
        pass

    @abstractmethod
    def render(self, screen) -> None:
        """
        Render the current game state to a pygame screen.

        Args:
            screen: Pygame surface to draw on
        """
        pass

    @abstractmethod
    def get_state(self) -> np.ndarray:
        """
        Get the current state as a normalized vector.

        Returns:
            np.ndarray: Current state vector
        """
        pass

    def close(self) -> None:
        """Clean up resources. Override if needed."""
        pass

    def seed(self, seed: int) -> None:
        """Set random seed for reproducibility. Override if game has randomness."""
        pass
