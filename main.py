#!/usr/bin/env python3
"""
Quantum Pong - Main Entry Point
===============================

Usage:
    # Play against the neural paddle (it keeps learning while you play)
    python main.py --human

    # Headless self-play against the scripted opponent
    python main.py --headless --matches 200

    # Watch the neural paddle play the scripted opponent
    python main.py --watch --difficulty hard

    # Common options
    python main.py --human --model models/my_ai.pt --seed 42 --log-level DEBUG

Press (in a window):
    - ESC or Q: Quit (model is saved)
    - P: Pause/Resume
    - S: Save current model
    - R: Restart match
"""

# Suppress pygame's pkg_resources deprecation warning (pygame issue #4557)
import warnings
warnings.filterwarnings("ignore", category=UserWarning, module="pygame.pkgdata")

import argparse
import os
import sys
from typing import Optional

import numpy as np
import pygame

from config import Config
from quantum_pong.ai import Trainer, save_model, load_or_create
from quantum_pong.game import QuantumPong, ScriptedOpponent
from quantum_pong.utils.logger import setup_logging, get_logger, LogLevel

logger = get_logger(__name__)


class GameApp:
    """
    Windowed front end for --human and --watch.

    The neural paddle trains online in both modes; --watch replaces the
    keyboard with the scripted opponent.
    """

    def __init__(self, config: Config, args: argparse.Namespace):
        self.config = config
        self.args = args
        self.model_path = args.model

        pygame.init()
        self.screen = pygame.display.set_mode((config.SCREEN_WIDTH, config.SCREEN_HEIGHT))
        pygame.display.set_caption("Quantum Pong")
        self.clock = pygame.time.Clock()

        controller = load_or_create(config, self.model_path)
        opponent = None
        if args.watch:
            opponent = ScriptedOpponent(args.difficulty, rng=np.random.default_rng(config.SEED))
        self.game = QuantumPong(config, controller=controller, opponent=opponent, headless=False)

        self.running = True
        self.paused = False

    def _handle_events(self) -> None:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_ESCAPE, pygame.K_q):
                    self.running = False
                elif event.key == pygame.K_p:
                    self.paused = not self.paused
                    logger.info("Paused" if self.paused else "Resumed")
                elif event.key == pygame.K_s:
                    self._save()
                elif event.key == pygame.K_r:
                    self.game.reset()
                    logger.info("Match restarted")

    def _save(self) -> None:
        if self.args.no_save:
            return
        try:
            save_model(self.game.controller, self.model_path)
        except OSError:
            logger.error("Model was not saved")

    def run(self) -> None:
        mode = "WATCH" if self.args.watch else "HUMAN PLAY"
        logger.info("=" * 60)
        logger.info(f"  {mode} MODE")
        if not self.args.watch:
            logger.info("   UP/DOWN arrows (or W/S): Move paddle")
        logger.info("   P: Pause | S: Save | R: Restart | Q/ESC: Quit")
        logger.info("=" * 60)

        match = 1
        while self.running:
            self._handle_events()
            if self.paused:
                self.clock.tick(self.config.FPS)
                continue

            if self.args.watch:
                action = None
            else:
                action = self.game.get_human_action(pygame.key.get_pressed())

            _, _, done, info = self.game.step(action)

            self.game.render(self.screen)
            pygame.display.flip()

            if done:
                stats = self.game.controller.get_stats()
                logger.info(
                    f"Match {match} over: player {info['player_score']} - AI {info['ai_score']} "
                    f"(trained {stats['training_sessions']}x)"
                )
                self._save()
                pygame.time.wait(1500)
                self.game.reset()
                match += 1

            self.clock.tick(self.config.FPS)

        self._save()
        pygame.quit()


def run_headless(config: Config, args: argparse.Namespace) -> None:
    """Self-play training without a window."""
    controller = load_or_create(config, args.model)
    opponent = ScriptedOpponent(args.difficulty, rng=np.random.default_rng(config.SEED))
    game = QuantumPong(config, controller=controller, opponent=opponent, headless=True)

    trainer = Trainer(game, config, model_path=args.model)
    trainer.train(num_matches=args.matches, save=not args.no_save)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Quantum Pong - Pong against a self-training neural network",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
EXAMPLES
========
    python main.py --human                     Play against the AI
    python main.py --headless --matches 500    Train by self-play, no window
    python main.py --watch --difficulty hard   Watch the AI play the scripted paddle
        """
    )

    mode_group = parser.add_mutually_exclusive_group()
    mode_group.add_argument(
        '--human', action='store_true',
        help='Human mode: play against the neural paddle (default)'
    )
    mode_group.add_argument(
        '--headless', action='store_true',
        help='Headless self-play training against the scripted opponent'
    )
    mode_group.add_argument(
        '--watch', action='store_true',
        help='Watch the neural paddle play the scripted opponent'
    )

    parser.add_argument(
        '--matches', type=int, default=None,
        help='Number of matches for headless training (default: MAX_MATCHES)'
    )
    parser.add_argument(
        '--model', type=str, default=None,
        help='Checkpoint path to load from and save to'
    )
    parser.add_argument(
        '--no-save', action='store_true',
        help='Never write checkpoints'
    )
    parser.add_argument(
        '--seed', type=int, default=None,
        help='Random seed for reproducible matches'
    )
    parser.add_argument(
        '--difficulty', type=str, default=None,
        choices=list(ScriptedOpponent.SKILL_LEVELS),
        help='Scripted opponent difficulty (default: OPPONENT_DIFFICULTY)'
    )
    parser.add_argument(
        '--policy', type=str, default=None,
        choices=['epsilon_greedy', 'heuristic_blend'],
        help='Neural controller policy'
    )
    parser.add_argument(
        '--log-level', type=str, default=None,
        choices=[level.name for level in LogLevel],
        help='Logging verbosity (default: LOG_LEVEL)'
    )
    parser.add_argument(
        '--log-file', action='store_true',
        help='Also write logs to a timestamped file in LOG_DIR'
    )

    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    config = Config()
    if args.seed is not None:
        config.SEED = args.seed
    if args.policy:
        config.POLICY = args.policy
    if args.log_level:
        config.LOG_LEVEL = args.log_level
    args.difficulty = args.difficulty or config.OPPONENT_DIFFICULTY
    args.model = args.model or os.path.join(config.MODEL_DIR, config.MODEL_FILENAME)

    setup_logging(
        log_dir=config.LOG_DIR,
        level=LogLevel.from_name(config.LOG_LEVEL),
        file_output=args.log_file,
        force=True,
        run_name='headless' if args.headless else ('watch' if args.watch else 'human'),
    )

    if args.headless:
        run_headless(config, args)
    else:
        GameApp(config, args).run()


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
