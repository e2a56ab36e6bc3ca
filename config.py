"""
Configuration file for Quantum Pong
===================================

All physics constants, neural controller hyperparameters, and match settings
are centralized here. Modify these values to experiment with different
tunings.

Usage:
    from config import Config
    cfg = Config()
    print(cfg.LEARNING_RATE)
"""

from dataclasses import dataclass, field
from typing import List, Tuple, Optional
import torch


@dataclass
class Config:
    """
    Central configuration for the entire project.

    Sections:
    1. Screen - Field dimensions
    2. Physics - Integrator and collision constants
    3. Paddle / Ball - Entity settings
    4. Neural Controller - Architecture and training
    5. Exploration - Epsilon-greedy settings
    6. Quantum / Power-ups - Cosmetic chaos layer
    7. Scoring - Match rules
    8. System - Logging, paths and seeds
    """

    # =========================================================================
    # SCREEN SETTINGS
    # =========================================================================

    SCREEN_WIDTH: int = 1200
    SCREEN_HEIGHT: int = 800
    FPS: int = 60

    # =========================================================================
    # PHYSICS
    # =========================================================================

    # Linear drag: velocity -= velocity * AIR_RESISTANCE each integration
    AIR_RESISTANCE: float = 0.001

    # Multiplicative friction applied to paddles each integration
    FRICTION: float = 0.98

    # Default restitution for bodies (1.0 = perfectly elastic)
    ELASTICITY: float = 1.0

    # Hard velocity clamp applied after every integration step
    MAX_VELOCITY: float = 30.0

    # Angular velocity decay per tick
    ROTATIONAL_DAMPING: float = 0.99

    # Angular velocity impulse per pixel of contact offset from paddle center
    SPIN_FACTOR: float = 0.01

    # Angular velocity gained per unit of paddle vertical velocity on a hit
    PADDLE_SPIN_TRANSFER: float = 0.05

    # Contacts within this fraction of paddle height from center are "perfect"
    PERFECT_HIT_BAND: float = 0.2

    # =========================================================================
    # PADDLE SETTINGS
    # =========================================================================

    PADDLE_WIDTH: int = 15
    PADDLE_HEIGHT: int = 100
    PADDLE_SPEED: float = 8.0
    PADDLE_MASS: float = 2.0
    PADDLE_MARGIN: int = 30  # Distance of paddle center from the side wall
    PADDLE_DECELERATION: float = 0.85  # Velocity multiplier when no input
    PADDLE_BOOST_MULTIPLIER: float = 2.0

    # =========================================================================
    # BALL SETTINGS
    # =========================================================================

    BALL_RADIUS: float = 8.0
    BALL_MASS: float = 1.0
    BALL_INITIAL_SPEED: float = 5.0
    BALL_MAX_SPEED: float = 25.0
    BALL_MIN_SPEED: float = 2.0
    BALL_SPEED_INCREMENT: float = 0.1  # Speed gained on every paddle hit
    BALL_SPIN_DECAY: float = 0.99
    BALL_SPIN_CURVE: float = 0.1  # Magnus-style curve from angular velocity

    # =========================================================================
    # NEURAL CONTROLLER ARCHITECTURE
    # =========================================================================

    # Input size is fixed by the feature encoder (see quantum_pong.ai.features)
    STATE_SIZE: int = 20

    # Action space: UP, STAY, DOWN
    ACTION_SIZE: int = 3

    # Hidden layer architecture (ReLU); output layer is always softmax
    HIDDEN_LAYERS: List[int] = field(default_factory=lambda: [40, 40, 20])

    # Policy: 'epsilon_greedy' (exploration + pure network) or
    # 'heuristic_blend' (network gated by the trajectory predictor)
    POLICY: str = 'epsilon_greedy'

    # Heuristic blend: hold when predicted intercept is this close (pixels)
    BLEND_DEAD_ZONE: float = 5.0
    BLEND_CENTER_DEAD_ZONE: float = 10.0

    # =========================================================================
    # TRAINING HYPERPARAMETERS
    # =========================================================================

    # Step size of the hand-rolled reward-scaled update
    LEARNING_RATE: float = 0.01

    # Bounded FIFO of (features, one-hot action) samples
    TRAINING_BUFFER_SIZE: int = 200

    # Training is skipped until the buffer holds this many samples
    MIN_TRAINING_SAMPLES: int = 20

    # Number of most recent samples replayed on each scoring event
    TRAINING_SLICE: int = 30

    # Reward factors applied to (target - output)
    REWARD_SCORED: float = 1.0
    REWARD_CONCEDED: float = -0.5

    # =========================================================================
    # EXPLORATION SETTINGS (Epsilon-Greedy)
    # =========================================================================

    EPSILON_START: float = 0.3
    EPSILON_END: float = 0.05

    # Decay per decision: epsilon = max(EPSILON_END, epsilon * EPSILON_DECAY)
    EPSILON_DECAY: float = 0.995

    # =========================================================================
    # QUANTUM LAYER (cosmetic)
    # =========================================================================

    QUANTUM_ENABLED: bool = True
    QUANTUM_SUPERPOSITION_CHANCE: float = 0.001
    QUANTUM_TUNNELING_CHANCE: float = 0.03
    QUANTUM_GHOST_COUNT: int = 4
    QUANTUM_GHOST_OFFSET: float = 30.0
    QUANTUM_GHOST_FADE: float = 0.98
    QUANTUM_GHOST_MIN_ALPHA: float = 0.1
    QUANTUM_GHOST_SPREAD: float = 2.0  # Extra ghost speed along its spawn angle
    QUANTUM_COLLAPSE_ALPHA: float = 0.3  # Collapse once the brightest ghost fades below this
    QUANTUM_ENTANGLE_CHANCE: float = 0.1

    # =========================================================================
    # POWER-UPS
    # =========================================================================

    POWERUPS_ENABLED: bool = True
    POWERUP_SPAWN_CHANCE: float = 0.002
    POWERUP_RADIUS: float = 15.0
    POWERUP_LIFETIME_TICKS: int = 600
    POWERUP_DURATION_TICKS: int = 300
    MAX_BALLS: int = 5

    # Effect strengths
    SPEED_BOOST_FACTOR: float = 1.5
    SIZE_GROW_FACTOR: float = 1.5
    SIZE_SHRINK_FACTOR: float = 0.7
    BALL_RADIUS_MIN: float = 5.0
    BALL_RADIUS_MAX: float = 20.0
    MULTI_BALL_COUNT: int = 2
    TIME_SLOW_SCALE: float = 0.5
    GRAVITY: float = 0.5
    FREEZE_DURATION_TICKS: int = 120

    # Quantum power-up: ghosts spawned around the collecting ball
    QUANTUM_POWERUP_GHOSTS: int = 5

    # Magnetic power-up: attractive field at the field center
    MAGNETIC_FIELD_RADIUS: float = 300.0
    MAGNETIC_FIELD_STRENGTH: float = 5.0

    # Chaos power-up: raises the chaos level and drops extra power-ups
    CHAOS_LEVEL_GAIN: float = 2.0
    CHAOS_MAX_LEVEL: float = 10.0
    CHAOS_POWERUP_SPAWNS: int = 3
    CHAOS_SPAWN_INTERVAL_TICKS: int = 60

    # Above this chaos level balls randomly fall into superposition
    CHAOS_FLUCTUATION_THRESHOLD: float = 5.0
    CHAOS_FLUCTUATION_CHANCE: float = 0.001
    CHAOS_GHOST_COUNT: int = 4

    # Moving/rotating obstacle motion per tick
    OBSTACLE_SPEED: float = 2.0
    OBSTACLE_ROTATION_SPEED: float = 0.02

    # Obstacles placed at match start: list of (center_x, center_y, w, h, kind)
    OBSTACLES: List[Tuple[float, float, float, float, str]] = field(default_factory=list)
    OBSTACLE_HEALTH: int = 3

    # =========================================================================
    # SCORING
    # =========================================================================

    WIN_SCORE: int = 11
    REWARD_PADDLE_HIT: float = 0.2
    REWARD_POINT: float = 1.0

    # =========================================================================
    # TRAINING CONTROL (headless self-play)
    # =========================================================================

    MAX_MATCHES: int = 100
    MAX_TICKS_PER_MATCH: int = 20000
    SAVE_EVERY: int = 10
    LOG_EVERY: int = 1
    PLOT_HISTORY_LENGTH: int = 100
    OPPONENT_DIFFICULTY: str = 'medium'

    # =========================================================================
    # VISUALIZATION
    # =========================================================================

    COLOR_BACKGROUND: Tuple[int, int, int] = (0, 0, 0)
    COLOR_PLAYER: Tuple[int, int, int] = (0, 255, 0)
    COLOR_AI: Tuple[int, int, int] = (255, 0, 255)
    COLOR_BALL: Tuple[int, int, int] = (0, 255, 255)
    COLOR_OBSTACLE: Tuple[int, int, int] = (128, 128, 128)
    COLOR_TEXT: Tuple[int, int, int] = (255, 255, 255)

    # =========================================================================
    # SYSTEM SETTINGS
    # =========================================================================

    # Device used as map_location when restoring checkpoints
    @property
    def DEVICE(self) -> torch.device:
        """Checkpoints are tiny numpy-backed tensors, so always restore on CPU."""
        return torch.device('cpu')

    MODEL_DIR: str = 'models'
    LOG_DIR: str = 'logs'
    LOG_LEVEL: str = 'INFO'
    MODEL_FILENAME: str = 'quantum_pong_ai.pt'

    # Random seed for reproducibility (None for random)
    SEED: Optional[int] = None

    def __post_init__(self):
        """Validation and derived calculations."""
        assert self.LEARNING_RATE > 0, "Learning rate must be positive"
        assert self.STATE_SIZE > 0, "State size must be positive"
        assert self.ACTION_SIZE == 3, "Action size must be 3 (up, stay, down)"
        assert all(h > 0 for h in self.HIDDEN_LAYERS), "Hidden layer sizes must be positive"
        assert self.TRAINING_BUFFER_SIZE > 0, "Training buffer size must be positive"
        assert 0 < self.MIN_TRAINING_SAMPLES <= self.TRAINING_BUFFER_SIZE, \
            "MIN_TRAINING_SAMPLES must be in (0, TRAINING_BUFFER_SIZE]"
        assert self.TRAINING_SLICE > 0, "Training slice must be positive"
        assert self.EPSILON_START >= self.EPSILON_END, "Epsilon start must be >= end"
        assert 0 < self.EPSILON_DECAY <= 1, "Epsilon decay must be in (0, 1]"
        assert self.POLICY in ('epsilon_greedy', 'heuristic_blend'), \
            f"Unknown policy: {self.POLICY}"
        assert self.MAX_VELOCITY > 0, "Max velocity must be positive"
        assert self.BALL_MIN_SPEED <= self.BALL_MAX_SPEED, "Ball min speed must be <= max speed"
        assert self.WIN_SCORE > 0, "Win score must be positive"
        assert 0 < self.BALL_RADIUS_MIN <= self.BALL_RADIUS_MAX, "Invalid ball radius bounds"
        assert self.MAX_BALLS >= 1, "At least one ball must be allowed"
        assert self.MAGNETIC_FIELD_RADIUS > 0, "Magnetic field radius must be positive"
        assert self.CHAOS_SPAWN_INTERVAL_TICKS > 0, "Chaos spawn interval must be positive"


# Global config instance for easy importing
config = Config()


if __name__ == "__main__":
    # Print configuration summary
    cfg = Config()
    print("=" * 60)
    print("Quantum Pong - Configuration Summary")
    print("=" * 60)
    print(f"\nField: {cfg.SCREEN_WIDTH}x{cfg.SCREEN_HEIGHT} @ {cfg.FPS} FPS")
    print(f"\nNeural Controller:")
    print(f"   Input size: {cfg.STATE_SIZE}")
    print(f"   Hidden layers: {cfg.HIDDEN_LAYERS}")
    print(f"   Output size: {cfg.ACTION_SIZE}")
    print(f"   Policy: {cfg.POLICY}")
    print(f"\nTraining:")
    print(f"   Learning rate: {cfg.LEARNING_RATE}")
    print(f"   Buffer: {cfg.TRAINING_BUFFER_SIZE} (min {cfg.MIN_TRAINING_SAMPLES}, slice {cfg.TRAINING_SLICE})")
    print(f"   Rewards: scored {cfg.REWARD_SCORED:+}, conceded {cfg.REWARD_CONCEDED:+}")
    print(f"\nExploration:")
    print(f"   Epsilon: {cfg.EPSILON_START} -> {cfg.EPSILON_END}")
    print(f"   Decay: {cfg.EPSILON_DECAY}")
    print("=" * 60)
