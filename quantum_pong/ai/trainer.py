"""
Training Loop
=============

Headless self-play: the neural paddle plays full matches against the
scripted opponent and learns online from every point.

    1. Run a match tick by tick (the controller trains inside the game)
    2. Track per-match statistics
    3. Log progress and save checkpoints
"""

import os
import time
from dataclasses import dataclass
from typing import Optional, List, Dict

import numpy as np

from .persistence import save_model
from ..utils.logger import get_logger, log_match_metrics

import sys
sys.path.append('../..')
from config import Config

logger = get_logger(__name__)


@dataclass
class MatchStats:
    """Statistics for a single match."""
    match: int
    player_score: int
    ai_score: int
    ticks: int
    total_reward: float
    epsilon: float
    training_sessions: int
    ai_hits: int
    longest_rally: int
    duration: float
    won: bool


class TrainingMetrics:
    """
    Tracks match results over time.

    Metrics tracked:
        - AI and opponent scores
        - Total rewards
        - Ticks per match
        - Epsilon values
        - Wins
    """

    def __init__(self, history_length: int = 100):
        self.history_length = history_length

        self.ai_scores: List[int] = []
        self.player_scores: List[int] = []
        self.rewards: List[float] = []
        self.ticks: List[int] = []
        self.epsilons: List[float] = []
        self.hits: List[int] = []
        self.wins: List[bool] = []

    def add(self, stats: MatchStats) -> None:
        self.ai_scores.append(stats.ai_score)
        self.player_scores.append(stats.player_score)
        self.rewards.append(stats.total_reward)
        self.ticks.append(stats.ticks)
        self.epsilons.append(stats.epsilon)
        self.hits.append(stats.ai_hits)
        self.wins.append(stats.won)

        if len(self.ai_scores) > self.history_length:
            for attr in ['ai_scores', 'player_scores', 'rewards', 'ticks',
                         'epsilons', 'hits', 'wins']:
                setattr(self, attr, getattr(self, attr)[-self.history_length:])

    def get_recent_average(self, metric: str, n: int = 100) -> float:
        values = getattr(self, metric, [])
        if not values:
            return 0.0
        return float(np.mean(values[-n:]))

    def get_win_rate(self, n: int = 100) -> float:
        if not self.wins:
            return 0.0
        recent = self.wins[-n:]
        return sum(recent) / len(recent)


class Trainer:
    """
    Runs self-play matches for the neural controller.

    Example:
        >>> game = QuantumPong(config, opponent=ScriptedOpponent('medium'), headless=True)
        >>> trainer = Trainer(game, config)
        >>> metrics = trainer.train(num_matches=50)
    """

    def __init__(self, game, config: Optional[Config] = None, model_path: Optional[str] = None):
        """
        Args:
            game: QuantumPong instance (owns the controller)
            config: Configuration object
            model_path: Checkpoint path (defaults to MODEL_DIR/MODEL_FILENAME)
        """
        self.game = game
        self.controller = game.controller
        self.config = config or Config()
        self.model_path = model_path or os.path.join(self.config.MODEL_DIR, self.config.MODEL_FILENAME)

        self.metrics = TrainingMetrics(self.config.PLOT_HISTORY_LENGTH)
        self.current_match = 0
        self.total_ticks = 0

    def run_match(self, render_callback=None) -> MatchStats:
        """Play one match to completion (or the tick limit)."""
        start_time = time.time()
        self.game.reset()

        total_reward = 0.0
        ticks = 0
        info: Dict = {}

        while ticks < self.config.MAX_TICKS_PER_MATCH:
            _, reward, done, info = self.game.step(None)
            total_reward += reward
            ticks += 1
            self.total_ticks += 1

            if render_callback is not None:
                render_callback(self.game)

            if done:
                break

        if ticks >= self.config.MAX_TICKS_PER_MATCH:
            logger.debug(f"Match {self.current_match} hit the tick limit")

        stats = self.controller.get_stats()
        return MatchStats(
            match=self.current_match,
            player_score=info.get('player_score', 0),
            ai_score=info.get('ai_score', 0),
            ticks=ticks,
            total_reward=total_reward,
            epsilon=stats['epsilon'],
            training_sessions=stats['training_sessions'],
            ai_hits=info.get('ai_hits', 0),
            longest_rally=info.get('longest_rally', 0),
            duration=time.time() - start_time,
            won=info.get('won', False),
        )

    def train(self, num_matches: Optional[int] = None, save: bool = True) -> TrainingMetrics:
        """
        Run the self-play loop.

        Args:
            num_matches: Number of matches (default from config)
            save: Write checkpoints every SAVE_EVERY matches and at the end
        """
        num_matches = num_matches or self.config.MAX_MATCHES

        logger.info("=" * 60)
        logger.info("Starting self-play training")
        logger.info(f"   Matches: {num_matches}")
        logger.info(f"   Network: {self.controller.network.topology()}")
        logger.info(f"   Policy: {self.controller.policy}")
        logger.info("=" * 60)

        try:
            for match in range(1, num_matches + 1):
                self.current_match = match
                stats = self.run_match()
                self.metrics.add(stats)

                if match % self.config.LOG_EVERY == 0:
                    log_match_metrics(
                        match,
                        stats.player_score,
                        stats.ai_score,
                        stats.epsilon,
                        training_sessions=stats.training_sessions,
                        ticks=stats.ticks,
                    )

                if save and match % self.config.SAVE_EVERY == 0:
                    save_model(self.controller, self.model_path)
        except KeyboardInterrupt:
            logger.warning(f"Training interrupted at match {self.current_match}")

        if save:
            save_model(self.controller, self.model_path)

        logger.info("=" * 60)
        logger.info("Training complete")
        logger.info(f"   Win rate: {self.metrics.get_win_rate() * 100:.1f}%")
        logger.info(f"   Avg AI score: {self.metrics.get_recent_average('ai_scores'):.2f}")
        logger.info(f"   Final epsilon: {self.controller.epsilon:.4f}")
        logger.info(f"   Total ticks: {self.total_ticks:,}")
        logger.info("=" * 60)

        return self.metrics

    def evaluate(self, num_matches: int = 5) -> Dict[str, float]:
        """Play greedy matches without exploration or training."""
        original = self.game.train_ai
        self.game.train_ai = False
        results = []
        try:
            for _ in range(num_matches):
                results.append(self.run_match())
        finally:
            self.game.train_ai = original

        return {
            'mean_ai_score': float(np.mean([r.ai_score for r in results])),
            'mean_player_score': float(np.mean([r.player_score for r in results])),
            'win_rate': sum(r.won for r in results) / num_matches,
        }
