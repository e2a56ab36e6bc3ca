"""
Match State
===========

Everything that changes during a match, owned by the orchestrator and
passed explicitly to whatever needs it.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..physics import ForceField
from .entities import Paddle, Ball, Obstacle, PowerUp, PLAYER, AI


@dataclass
class MatchState:
    """
    Mutable state of one match.

    Created by QuantumPong.reset(), mutated every tick.
    """
    player_paddle: Paddle
    ai_paddle: Paddle
    balls: List[Ball]
    obstacles: List[Obstacle] = field(default_factory=list)
    powerups: List[PowerUp] = field(default_factory=list)
    force_fields: List[ForceField] = field(default_factory=list)

    player_score: int = 0
    ai_score: int = 0
    win_score: int = 11

    tick: int = 0
    elapsed: float = 0.0
    time_scale: float = 1.0

    combo: int = 0
    last_scorer: Optional[str] = None
    rally: int = 0
    longest_rally: int = 0

    quantum_active: bool = False
    chaos_level: float = 0.0
    game_over: bool = False
    winner: Optional[str] = None

    def score_point(self, scorer: str) -> None:
        """Award a point, update the combo streak and check for a winner."""
        if scorer == PLAYER:
            self.player_score += 1
        elif scorer == AI:
            self.ai_score += 1
        else:
            raise ValueError(f"Unknown scorer: {scorer}")

        self.combo = self.combo + 1 if self.last_scorer == scorer else 1
        self.last_scorer = scorer
        self.longest_rally = max(self.longest_rally, self.rally)
        self.rally = 0

        if self.player_score >= self.win_score or self.ai_score >= self.win_score:
            self.game_over = True
            self.winner = scorer

    def active_balls(self) -> List[Ball]:
        return [ball for ball in self.balls if ball.is_active]

    def paddle(self, side: str) -> Paddle:
        return self.player_paddle if side == PLAYER else self.ai_paddle
