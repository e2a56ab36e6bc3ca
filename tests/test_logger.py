"""
Tests for the logging helpers.
"""

import io
import logging
import tempfile

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from quantum_pong.utils import logger as qlog
from quantum_pong.utils.logger import (
    LogLevel,
    ROOT_LOGGER_NAME,
    get_logger,
    get_log_path,
    setup_logging,
    log_match_metrics,
    log_model_event,
    LevelColorFormatter,
)


@pytest.fixture
def restore_logging():
    yield
    setup_logging(force=True)


class TestLogLevel:
    """Test level parsing."""

    @pytest.mark.parametrize("name,level", [('debug', LogLevel.DEBUG), ('INFO', LogLevel.INFO),
                                            ('Warning', LogLevel.WARNING)])
    def test_from_name(self, name, level):
        assert LogLevel.from_name(name) is level

    def test_unknown(self):
        with pytest.raises(ValueError):
            LogLevel.from_name('chatty')


class TestLoggers:
    """Test logger naming and setup."""

    def test_namespace(self):
        assert get_logger('quantum_pong.ai.controller').name == f'{ROOT_LOGGER_NAME}.ai.controller'
        assert get_logger('tests').name == f'{ROOT_LOGGER_NAME}.tests'

    def test_force_changes_level(self, restore_logging):
        setup_logging(level=LogLevel.WARNING, force=True)
        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.WARNING

    def test_without_force_is_noop(self, restore_logging):
        setup_logging(level=LogLevel.INFO, force=True)
        setup_logging(level=LogLevel.ERROR)
        assert logging.getLogger(ROOT_LOGGER_NAME).level == logging.INFO

    def test_file_output(self, restore_logging):
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, console_output=False, file_output=True,
                          log_filename='test.log', force=True)
            log_match_metrics(3, 1, 2, 0.25, training_sessions=4, ticks=900)
            log_model_event('save', 'models/x.pt', epsilon='0.1000')
            path = get_log_path()
            assert path is not None
            qlog._file_handler.flush()
            text = path.read_text(encoding='utf-8')
            assert "match=3 | score=1-2 | eps=0.2500 | trained=4 | ticks=900" in text
            assert "SAVE | models/x.pt | epsilon=0.1000" in text
            setup_logging(force=True)

    def test_generated_filename_uses_run_name(self, restore_logging):
        with tempfile.TemporaryDirectory() as tmpdir:
            setup_logging(log_dir=tmpdir, console_output=False, file_output=True,
                          run_name='headless', force=True)
            path = get_log_path()
            assert path.parent == qlog.Path(tmpdir)
            assert path.name.startswith('headless_')
            assert path.suffix == '.log'
            setup_logging(force=True)

    def test_console_only_has_no_log_path(self, restore_logging):
        setup_logging(console_output=True, file_output=False, force=True)
        assert get_log_path() is None


class TestHelpers:
    """Test the match and model record formats."""

    def test_match_metrics_skip_missing_fields(self, caplog):
        with caplog.at_level(logging.INFO, logger=f'{ROOT_LOGGER_NAME}.training'):
            log_match_metrics(1, 0, 11, 0.05)
        assert "match=1 | score=0-11 | eps=0.0500" in caplog.text
        assert "trained=" not in caplog.text

    def test_unknown_model_event(self):
        with pytest.raises(ValueError):
            log_model_event('delete', 'models/x.pt')


class TestLevelColorFormatter:
    """Test terminal coloring."""

    class FakeTerminal:
        def isatty(self):
            return True

    def make_record(self, level=logging.WARNING):
        return logging.LogRecord('qpong.test', level, __file__, 1, "paddle hit", None, None)

    def test_plain_when_not_a_terminal(self):
        formatter = LevelColorFormatter(io.StringIO())
        assert '\033[' not in formatter.format(self.make_record())

    def test_colored_on_terminal(self, monkeypatch):
        monkeypatch.delenv('NO_COLOR', raising=False)
        formatter = LevelColorFormatter(self.FakeTerminal())
        record = self.make_record()
        text = formatter.format(record)
        assert LevelColorFormatter.LEVEL_COLORS[logging.WARNING] in text
        assert record.levelname == 'WARNING'

    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv('NO_COLOR', '1')
        formatter = LevelColorFormatter(self.FakeTerminal())
        assert '\033[' not in formatter.format(self.make_record())
