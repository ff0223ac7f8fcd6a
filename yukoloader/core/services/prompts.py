"""
Prompts — where confirmations and free-text answers come from.

Two sources implement the same protocol: the terminal (click prompts)
and an auto-accepting source for CI and other non-interactive runs.
Stages receive one via the runtime instead of checking ``CI`` inline.
"""

from __future__ import annotations

import logging
import sys
from typing import Protocol

import click

from yukoloader.core.context import HostContext

logger = logging.getLogger(__name__)


class Prompter(Protocol):
    def confirm(self, question: str) -> bool:
        ...

    def ask(self, question: str, default: str) -> str:
        ...


class TerminalPrompter:
    """Ask the operator on the controlling terminal."""

    def confirm(self, question: str) -> bool:
        return click.confirm(question, default=False)

    def ask(self, question: str, default: str) -> str:
        answer = click.prompt(question, default=default, show_default=True)
        return answer.strip() or default


class AutoPrompter:
    """Accept every confirmation and every default."""

    def confirm(self, question: str) -> bool:
        logger.info("%s [auto-accepted]", question)
        return True

    def ask(self, question: str, default: str) -> str:
        return default


def select_prompter(ctx: HostContext, assume_yes: bool = False) -> Prompter:
    """Pick the prompt source for this run.

    Non-interactive when ``CI=true``, stdin is not a terminal, or the
    operator passed ``--yes``.
    """
    if assume_yes or ctx.is_ci or not sys.stdin.isatty():
        return AutoPrompter()
    return TerminalPrompter()
