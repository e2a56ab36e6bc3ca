"""
Quantum Pong
============

Match orchestrator. Owns the MatchState and runs a fixed call order per
tick:

    1. Player input (human or scripted) -> player paddle
    2. Encode features -> NeuralController.decide_action -> AI paddle
    3. Integrate paddles, then balls (force fields, spin, gravity, speed bounds)
    4. Collisions: paddles, top/bottom walls, obstacles (tunneling),
       ball vs ball, power-ups
    5. Goal lines: score, combo, training signal, serve or remove ball,
       win check
    6. Deferred actions (effect expiry), quantum layer, spawns and timers

Layout:
    The player paddle is on the left, the AI paddle on the right. A ball
    leaving through the left edge is a point for the AI and vice versa.

Rewards returned by step() are from the AI paddle's perspective:
    +REWARD_POINT when the AI scores, -REWARD_POINT when it concedes,
    +REWARD_PADDLE_HIT for every AI paddle hit.
"""

from typing import Optional, Tuple, Dict, Any

import numpy as np
import pygame

from .base_game import BaseGame
from .entities import Paddle, Ball, Obstacle, PowerUp, PLAYER, AI
from .match_state import MatchState
from .effects import DeferredActionQueue, POWERUP_KINDS, effect_for_powerup, apply_effect
from .quantum import QuantumLayer
from .opponent import ScriptedOpponent
from ..ai.controller import NeuralController, ACTIONS
from ..ai.features import encode_features, select_target_ball, FEATURE_COUNT
from ..physics import (
    Vector2D,
    check_circle_rect,
    check_circle_circle,
    resolve_circle_rect,
    resolve_circle_circle,
    resolve_static_surface,
)
from ..utils.logger import get_logger

import sys
sys.path.append('../..')
from config import Config

logger = get_logger(__name__)

TOP_NORMAL = Vector2D(0.0, 1.0)
BOTTOM_NORMAL = Vector2D(0.0, -1.0)


class QuantumPong(BaseGame):
    """
    Pong against a self-training neural paddle, with spin, obstacles,
    power-ups and a cosmetic quantum layer.

    State (see quantum_pong.ai.features): 20 normalized values describing
    the AI paddle, its target ball, the score and the quantum flag.

    Actions (player side):
        -1 = UP, 0 = STAY, +1 = DOWN, None = let the scripted opponent play
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        controller: Optional[NeuralController] = None,
        opponent: Optional[ScriptedOpponent] = None,
        headless: bool = False,
        train_ai: bool = True,
    ):
        """
        Args:
            config: Configuration object (uses default if None)
            controller: Neural controller for the AI paddle (fresh one if None)
            opponent: Scripted player used when step() gets action=None
            headless: If True, skip fonts and rendering
            train_ai: If False the AI paddle plays greedily and never trains
        """
        self.config = config or Config()
        self.headless = headless
        self.train_ai = train_ai

        self.width = self.config.SCREEN_WIDTH
        self.height = self.config.SCREEN_HEIGHT
        self.center = Vector2D(self.width / 2, self.height / 2)

        self.rng = np.random.default_rng(self.config.SEED)
        self.controller = controller or NeuralController(self.config, rng=self.rng)
        self.opponent = opponent
        self.quantum = QuantumLayer(self.config, self.rng)
        self.queue = DeferredActionQueue()

        self.state: Optional[MatchState] = None
        self._features = np.zeros(FEATURE_COUNT, dtype=np.float64)
        self._hit_flash_timer = 0
        self._score_flash_timer = 0

        if not headless:
            pygame.font.init()
            self._font = pygame.font.Font(None, 72)
            self._small_font = pygame.font.Font(None, 28)
        else:
            self._font = None
            self._small_font = None

        self.reset()

    @property
    def state_size(self) -> int:
        return FEATURE_COUNT

    @property
    def action_size(self) -> int:
        return len(ACTIONS)

    # ------------------------------------------------------------------
    # Match lifecycle
    # ------------------------------------------------------------------

    def reset(self) -> np.ndarray:
        """Start a new match. The controller keeps its weights."""
        cfg = self.config
        player = Paddle(cfg.PADDLE_MARGIN, self.height / 2, PLAYER, cfg)
        ai = Paddle(self.width - cfg.PADDLE_MARGIN, self.height / 2, AI, cfg)

        ball = Ball(self.center, cfg)
        direction = 1 if self.rng.random() > 0.5 else -1
        ball.reset(self.center, direction, self.rng)

        obstacles = [
            Obstacle(x, y, w, h, kind, config=cfg, rng=self.rng)
            for x, y, w, h, kind in cfg.OBSTACLES
        ]

        self.state = MatchState(
            player_paddle=player,
            ai_paddle=ai,
            balls=[ball],
            obstacles=obstacles,
            win_score=cfg.WIN_SCORE,
        )
        self.queue.clear()
        self.quantum.reset()
        if self.opponent is not None:
            self.opponent.reset()

        self._hit_flash_timer = 0
        self._score_flash_timer = 0
        self._features = self._encode()
        return self._features.copy()

    def step(self, action: Optional[int] = None) -> Tuple[np.ndarray, float, bool, dict]:
        """Advance the match by one tick."""
        state = self.state
        assert state is not None

        if state.game_over:
            return self.get_state(), 0.0, True, self._get_info()

        reward = 0.0
        dt = state.time_scale
        events: Dict[str, Any] = {'scored': None, 'ai_hit': False, 'trained': 0}

        # 1. Player input
        if action is None:
            action = self._opponent_action()
        if action not in ACTIONS:
            raise ValueError(f"Invalid player action {action!r}; expected one of {ACTIONS}")
        state.player_paddle.input = action

        # 2. AI decision
        features = self._encode()
        ai_action = self.controller.decide_action(features, explore=self.train_ai)
        state.ai_paddle.input = ai_action

        # 3. Integration
        state.player_paddle.update(dt, self.height)
        state.ai_paddle.update(dt, self.height)
        for ball in state.active_balls():
            if ball.frozen:
                continue
            for force_field in state.force_fields:
                force_field.apply_to(ball)
        for ball in state.balls:
            ball.update(dt)

        # 4. Collisions
        for ball in state.active_balls():
            reward += self._handle_paddle_collisions(ball, events)
            self._handle_wall_collisions(ball)
            self._handle_obstacle_collisions(ball)
        self._handle_ball_collisions()
        self._handle_powerups()

        # 5. Goal lines
        reward += self._handle_goals(features, ai_action, events)
        if self.train_ai and events['scored'] is None:
            self.controller.record_decision(features, ai_action)

        # 6. Timers, effects, quantum layer
        self.queue.advance()
        self.quantum.update(state, dt)
        self._update_powerups(dt)
        for obstacle in state.obstacles:
            obstacle.update(dt, self.width, self.height)
        state.obstacles = [o for o in state.obstacles if o.active]

        if self._hit_flash_timer > 0:
            self._hit_flash_timer -= 1
        if self._score_flash_timer > 0:
            self._score_flash_timer -= 1

        state.tick += 1
        state.elapsed += dt

        self._features = self._encode()
        info = self._get_info()
        info.update(events)
        return self._features.copy(), reward, state.game_over, info

    def _opponent_action(self) -> int:
        if self.opponent is None:
            return 0
        state = self.state
        return self.opponent.decide(state.player_paddle, state.active_balls(), self.width, self.height)

    # ------------------------------------------------------------------
    # Collisions
    # ------------------------------------------------------------------

    def _handle_paddle_collisions(self, ball: Ball, events: Dict[str, Any]) -> float:
        reward = 0.0
        for paddle in (self.state.player_paddle, self.state.ai_paddle):
            bounds = paddle.bounds
            if not check_circle_rect(ball.position, ball.radius, bounds):
                continue
            contact = resolve_circle_rect(
                ball, bounds,
                rect_velocity=paddle.velocity,
                rect_restitution=paddle.restitution,
            )
            if contact is None:
                continue

            perfect = ball.apply_paddle_hit(paddle, contact)
            paddle.hits += 1
            if perfect:
                paddle.perfect_hits += 1
            if self.quantum.roll_entanglement():
                paddle.quantum_hits += 1

            self.state.rally += 1
            self._hit_flash_timer = 10
            if paddle.side == AI:
                reward += self.config.REWARD_PADDLE_HIT
                events['ai_hit'] = True
        return reward

    def _handle_wall_collisions(self, ball: Ball) -> None:
        r = ball.radius
        if ball.position.y - r < 0:
            ball.position = ball.position.with_y(r)
            if ball.velocity.y < 0:
                resolve_static_surface(ball, TOP_NORMAL)
        elif ball.position.y + r > self.height:
            ball.position = ball.position.with_y(self.height - r)
            if ball.velocity.y > 0:
                resolve_static_surface(ball, BOTTOM_NORMAL)

    def _handle_obstacle_collisions(self, ball: Ball) -> None:
        for obstacle in self.state.obstacles:
            if not obstacle.active:
                continue
            bounds = obstacle.bounds
            if not check_circle_rect(ball.position, ball.radius, bounds):
                continue
            if self.quantum.try_tunnel(ball, bounds):
                self.state.quantum_active = True
                continue
            if resolve_circle_rect(ball, bounds) is not None and obstacle.kind == 'breakable':
                if obstacle.take_damage(1):
                    logger.debug(f"Obstacle destroyed at {obstacle.position}")

    def _handle_ball_collisions(self) -> None:
        balls = self.state.active_balls()
        for i in range(len(balls)):
            for j in range(i + 1, len(balls)):
                a, b = balls[i], balls[j]
                if check_circle_circle(a.position, a.radius, b.position, b.radius):
                    resolve_circle_circle(a, b)

    def _handle_powerups(self) -> None:
        state = self.state
        for powerup in state.powerups:
            if not powerup.active:
                continue
            for ball in state.active_balls():
                if powerup.touches(ball):
                    powerup.active = False
                    effect = effect_for_powerup(powerup.kind, self.config, self.rng)
                    apply_effect(
                        effect, state, ball, self.queue, self.config, self.rng,
                        quantum=self.quantum, spawn_powerup=self.spawn_powerup,
                    )
                    logger.debug(f"Power-up {powerup.kind} collected by ball {ball.ball_id}")
                    break

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def _handle_goals(self, features: np.ndarray, ai_action: int, events: Dict[str, Any]) -> float:
        state = self.state
        reward = 0.0
        for ball in list(state.balls):
            if ball.position.x - ball.radius < 0:
                scorer = AI
            elif ball.position.x + ball.radius > self.width:
                scorer = PLAYER
            else:
                continue

            state.score_point(scorer)
            self._score_flash_timer = 30
            reward += self.config.REWARD_POINT if scorer == AI else -self.config.REWARD_POINT

            if self.train_ai:
                if events['scored'] is None:
                    events['trained'] += self.controller.record_outcome(
                        features, ai_action,
                        did_score=scorer == AI,
                        did_concede=scorer == PLAYER,
                    )
                else:
                    factor = self.config.REWARD_SCORED if scorer == AI else self.config.REWARD_CONCEDED
                    events['trained'] += self.controller.train(factor)
            events['scored'] = scorer

            logger.debug(
                f"Point {scorer} | {state.player_score}-{state.ai_score} | combo {state.combo}"
            )

            if len(state.balls) > 1:
                state.balls.remove(ball)
            else:
                # Serve toward the side that just conceded
                ball.reset(self.center, 1 if scorer == PLAYER else -1, self.rng)

            if state.game_over:
                break
        return reward

    # ------------------------------------------------------------------
    # Spawning
    # ------------------------------------------------------------------

    def _update_powerups(self, dt: float) -> None:
        state = self.state
        for powerup in state.powerups:
            powerup.update(dt)
        state.powerups = [p for p in state.powerups if p.active]

        if self.config.POWERUPS_ENABLED and self.rng.random() < self.config.POWERUP_SPAWN_CHANCE:
            self.spawn_powerup()

    def spawn_powerup(self, kind: Optional[str] = None) -> PowerUp:
        """Place a power-up at a random spot away from the paddles."""
        kind = kind or str(self.rng.choice(POWERUP_KINDS))
        x = self.rng.uniform(200, self.width - 200)
        y = self.rng.uniform(100, self.height - 100)
        powerup = PowerUp(x, y, kind, self.config.POWERUP_RADIUS, self.config.POWERUP_LIFETIME_TICKS)
        self.state.powerups.append(powerup)
        return powerup

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def _encode(self) -> np.ndarray:
        state = self.state
        paddle = state.ai_paddle
        ball = select_target_ball(state.balls, paddle.position.x)
        return encode_features(
            paddle,
            ball,
            self.width,
            self.height,
            ai_score=state.ai_score,
            opponent_score=state.player_score,
            win_score=state.win_score,
            max_ball_speed=self.config.BALL_MAX_SPEED,
            quantum_active=state.quantum_active,
            time_scale=state.time_scale,
        )

    def get_state(self) -> np.ndarray:
        """Current feature vector for the AI paddle."""
        return self._features.copy()

    def _get_info(self) -> dict:
        state = self.state
        return {
            'player_score': state.player_score,
            'ai_score': state.ai_score,
            'won': state.winner == AI,
            'winner': state.winner,
            'rally': state.rally,
            'longest_rally': state.longest_rally,
            'combo': state.combo,
            'tick': state.tick,
            'balls': len(state.balls),
            'ai_hits': state.ai_paddle.hits,
            'ai_perfect_hits': state.ai_paddle.perfect_hits,
            'quantum_active': state.quantum_active,
            'chaos_level': state.chaos_level,
            'time_scale': state.time_scale,
        }

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, screen: pygame.Surface) -> None:
        """Draw the match. No-op in headless mode."""
        if self.headless:
            return

        cfg = self.config
        state = self.state
        screen.fill(cfg.COLOR_BACKGROUND)

        center_x = self.width // 2
        for y in range(0, self.height, 25):
            pygame.draw.rect(screen, (80, 80, 80), (center_x - 2, y, 4, 15))

        for obstacle in state.obstacles:
            b = obstacle.bounds
            color = cfg.COLOR_OBSTACLE
            if obstacle.kind == 'breakable':
                ratio = max(0.0, obstacle.health / cfg.OBSTACLE_HEALTH)
                color = (int(255 * (1 - ratio)), int(255 * ratio), 0)
            pygame.draw.rect(screen, color, (int(b.x), int(b.y), int(b.width), int(b.height)))

        for force_field in state.force_fields:
            pygame.draw.circle(
                screen, (60, 60, 140),
                (int(force_field.position.x), int(force_field.position.y)), int(force_field.radius), 1
            )

        for powerup in state.powerups:
            pygame.draw.circle(
                screen, (255, 200, 0),
                (int(powerup.position.x), int(powerup.position.y)), int(powerup.radius), 3
            )

        for paddle, color in ((state.player_paddle, cfg.COLOR_PLAYER), (state.ai_paddle, cfg.COLOR_AI)):
            b = paddle.bounds
            pygame.draw.rect(screen, color, (int(b.x), int(b.y), int(b.width), int(b.height)))
            if paddle.shield:
                pygame.draw.circle(
                    screen, (0, 255, 255),
                    (int(paddle.position.x), int(paddle.position.y)), int(paddle.height * 0.7), 3
                )

        for ball in state.balls:
            for ghost in ball.ghosts:
                shade = int(255 * ghost.alpha)
                pygame.draw.circle(
                    screen, (shade, 0, shade),
                    (int(ghost.position.x), int(ghost.position.y)), int(ball.radius)
                )
            color = (255, 255, 150) if self._hit_flash_timer > 0 else cfg.COLOR_BALL
            pygame.draw.circle(
                screen, color, (int(ball.position.x), int(ball.position.y)), int(ball.radius)
            )

        if self._font and self._small_font:
            score_color = cfg.COLOR_TEXT
            if self._score_flash_timer > 0:
                fade = int(255 * (1 - self._score_flash_timer / 30))
                score_color = (255, fade, fade)

            player_text = self._font.render(str(state.player_score), True, score_color)
            screen.blit(player_text, (self.width // 4 - player_text.get_width() // 2, 30))
            ai_text = self._font.render(str(state.ai_score), True, score_color)
            screen.blit(ai_text, (3 * self.width // 4 - ai_text.get_width() // 2, 30))

            stats = self.controller.get_stats()
            hud = self._small_font.render(
                f"Rally: {state.rally}  Combo: {state.combo}  "
                f"eps: {stats['epsilon']:.3f}  trained: {stats['training_sessions']}"
                + (f"  Chaos: {state.chaos_level:.1f}" if state.chaos_level else ""),
                True, (150, 150, 150)
            )
            screen.blit(hud, (center_x - hud.get_width() // 2, self.height - 30))

            if state.quantum_active:
                q = self._small_font.render("QUANTUM", True, (255, 0, 255))
                screen.blit(q, (center_x - q.get_width() // 2, 10))

            if state.game_over:
                msg = "YOU WIN!" if state.winner == PLAYER else "AI WINS"
                text = self._font.render(msg, True, cfg.COLOR_TEXT)
                screen.blit(text, text.get_rect(center=(center_x, self.height // 2)))

    def close(self) -> None:
        pass

    def seed(self, seed: int) -> None:
        """Reseed the match randomness (serves, spawns, quantum rolls)."""
        self.rng = np.random.default_rng(seed)
        self.quantum.rng = self.rng
        if self.opponent is not None:
            self.opponent.rng = self.rng

    # Human play helper
    def get_human_action(self, keys) -> int:
        """Convert pygame key state to a paddle direction."""
        if keys[pygame.K_UP] or keys[pygame.K_w]:
            return -1
        if keys[pygame.K_DOWN] or keys[pygame.K_s]:
            return 1
        return 0
