"""
Logging for Quantum Pong.

Every module logs under the 'qpong' namespace, so one call to
setup_logging() configures the whole package:

    from quantum_pong.utils.logger import get_logger

    logger = get_logger(__name__)      # -> 'qpong.ai.controller'
    logger.info("Match started")

Console output is colored by level when the stream is a terminal (and
NO_COLOR is unset). File output always records DEBUG and above.

Two helpers keep recurring records greppable:
    log_match_metrics  -> 'match=3 | score=1-2 | eps=0.2500 | ...'
    log_model_event    -> 'SAVE | models/quantum_pong_ai.pt | epsilon=0.1000'
"""

import logging
import os
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, TextIO


class LogLevel(Enum):
    """Levels accepted by LOG_LEVEL and --log-level."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR

    @classmethod
    def from_name(cls, name: str) -> 'LogLevel':
        """Parse a level name such as 'info' or 'DEBUG'."""
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name}") from None


ROOT_LOGGER_NAME = 'qpong'
PACKAGE_PREFIX = 'quantum_pong.'

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'

MODEL_EVENTS = ('save', 'load', 'fallback')

_initialized = False
_file_handler: Optional[logging.FileHandler] = None


class LevelColorFormatter(logging.Formatter):
    """Wraps the level name in an ANSI color when writing to a terminal."""

    RESET = '\033[0m'
    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }

    def __init__(self, stream: TextIO):
        super().__init__(LOG_FORMAT)
        is_tty = hasattr(stream, 'isatty') and stream.isatty()
        self.use_colors = is_tty and 'NO_COLOR' not in os.environ

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if not self.use_colors or color is None:
            return super().format(record)
        # Copy so other handlers still see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def _console_handler(level: LogLevel) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level.value)
    handler.setFormatter(LevelColorFormatter(sys.stdout))
    return handler


def _open_log_file(log_dir: str, log_filename: Optional[str], run_name: str) -> logging.FileHandler:
    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    if log_filename is None:
        log_filename = f"{run_name}_{datetime.now():%Y%m%d_%H%M%S}.log"

    handler = logging.FileHandler(directory / log_filename, mode='a', encoding='utf-8')
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(
    log_dir: str = 'logs',
    level: LogLevel = LogLevel.INFO,
    console_output: bool = True,
    file_output: bool = False,
    log_filename: Optional[str] = None,
    force: bool = False,
    run_name: str = 'match',
) -> None:
    """
    Configure the 'qpong' logger tree.

    Args:
        log_dir: Directory for log files
        level: Console threshold (and the logger's own level)
        console_output: Log to stdout
        file_output: Also log to a file in log_dir
        log_filename: File name; default is <run_name>_YYYYMMDD_HHMMSS.log
        force: Replace an existing configuration instead of keeping it
        run_name: Prefix for generated log file names
    """
    global _initialized, _file_handler

    if _initialized and not force:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(level.value)
    _file_handler = None

    if console_output:
        root_logger.addHandler(_console_handler(level))
    if file_output:
        _file_handler = _open_log_file(log_dir, log_filename, run_name)
        root_logger.addHandler(_file_handler)

    _initialized = True
    root_logger.debug(f"Logging initialized (level={level.name}, file={file_output})")


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, placed under the 'qpong' namespace.

    The 'quantum_pong.' prefix is dropped, so quantum_pong.game.pong logs
    as 'qpong.game.pong'. Logging is set up with defaults on first use.
    """
    if not _initialized:
        setup_logging()

    if name.startswith(PACKAGE_PREFIX):
        name = name[len(PACKAGE_PREFIX):]
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def get_log_path() -> Optional[Path]:
    """Path of the active log file, or None when logging only to the console."""
    if _file_handler is None:
        return None
    return Path(_file_handler.baseFilename)


def log_match_metrics(
    match: int,
    player_score: int,
    ai_score: int,
    epsilon: float,
    training_sessions: Optional[int] = None,
    ticks: Optional[int] = None,
) -> None:
    """One INFO line per finished match on 'qpong.training'."""
    fields = [
        ('match', match),
        ('score', f"{player_score}-{ai_score}"),
        ('eps', f"{epsilon:.4f}"),
        ('trained', training_sessions),
        ('ticks', ticks),
    ]
    line = " | ".join(f"{key}={value}" for key, value in fields if value is not None)
    get_logger('training').info(line)


def log_model_event(event: str, path: str, **context) -> None:
    """
    One INFO line per checkpoint event on 'qpong.model'.

    Args:
        event: 'save', 'load' or 'fallback'
        path: Checkpoint path
        **context: Extra key=value pairs (epsilon, trained, reason, ...)
    """
    if event not in MODEL_EVENTS:
        raise ValueError(f"Unknown model event '{event}'. Expected one of {MODEL_EVENTS}")

    parts = [event.upper(), str(path)]
    parts.extend(f"{key}={value}" for key, value in context.items())
    get_logger('model').info(" | ".join(parts))
