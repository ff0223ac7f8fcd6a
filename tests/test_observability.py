"""
Tests for logging setup and prompt selection.
"""

import logging
import sys

import click
import pytest

from yukoloader.core.observability.logging_config import SeverityFormatter, setup_logging
from yukoloader.core.services.prompts import AutoPrompter, TerminalPrompter, select_prompter


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(level, msg="hello"):
    return logging.LogRecord("yukoloader.test", level, __file__, 1, msg, None, None)


class TestSeverityFormatter:
    def test_tags(self):
        fmt = SeverityFormatter(color=False)
        assert fmt.format(_record(logging.INFO)) == "[INFO] hello"
        assert fmt.format(_record(logging.WARNING)) == "[WARN] hello"
        assert fmt.format(_record(logging.ERROR)) == "[ERROR] hello"

    def test_colored_tag(self):
        line = SeverityFormatter(color=True).format(_record(logging.WARNING))
        assert click.unstyle(line) == "[WARN] hello"
        assert line != "[WARN] hello"


class TestSetupLogging:
    def test_default_info(self, restore_logging):
        setup_logging()
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert isinstance(root.handlers[0].formatter, SeverityFormatter)

    def test_debug_uses_diagnostic_format(self, restore_logging):
        setup_logging(level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert not isinstance(root.handlers[0].formatter, SeverityFormatter)

    def test_unknown_level_falls_back_to_info(self, restore_logging):
        setup_logging(level="LOUD")
        assert logging.getLogger().level == logging.INFO

    def test_file_handler(self, restore_logging, tmp_path):
        log_file = tmp_path / "yuko.log"
        setup_logging(level="WARNING", log_file=str(log_file), log_file_level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        logging.getLogger("yukoloader.test").debug("to the file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "to the file" in log_file.read_text()


class TestPrompterSelection:
    def test_assume_yes(self, host):
        assert isinstance(select_prompter(host, assume_yes=True), AutoPrompter)

    def test_ci(self, host):
        assert isinstance(select_prompter(host.with_env(CI="true")), AutoPrompter)

    def test_non_tty_stdin(self, host, monkeypatch):
        class _Pipe:
            def isatty(self):
                return False

        monkeypatch.setattr(sys, "stdin", _Pipe())
        assert isinstance(select_prompter(host), AutoPrompter)

    def test_terminal(self, host, monkeypatch):
        class _Tty:
            def isatty(self):
                return True

        monkeypatch.setattr(sys, "stdin", _Tty())
        assert isinstance(select_prompter(host), TerminalPrompter)

    def test_auto_prompter(self):
        prompter = AutoPrompter()
        assert prompter.confirm("Install Nix?") is True
        assert prompter.ask("Username", "yuko") == "yuko"
