"""
Command adapter — run argument vectors and capture their outcome.

This is the most fundamental adapter: every package-manager install,
installer run, ssh-agent call and multiplexer probe goes through it.
``run_argv`` is the single place ``subprocess.run`` is called; the git
adapter builds on it.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from pathlib import Path
from typing import Mapping, NoReturn

from yukoloader.adapters.base import Adapter, ExecutionContext
from yukoloader.core.models.action import Receipt

logger = logging.getLogger(__name__)


def run_argv(
    adapter: str,
    context: ExecutionContext,
    *,
    env: Mapping[str, str] | None = None,
) -> Receipt:
    """Run ``context.argv`` and turn the outcome into a Receipt.

    Action params:
        argv (list[str]): Command and arguments.
        interactive (bool): Inherit the terminal instead of capturing.
        timeout (int | None): Seconds before the command is killed.
    """
    argv = context.argv
    params = context.action.params
    interactive = params.get("interactive", False)
    timeout = params.get("timeout")
    action_id = context.action.id
    command = shlex.join(argv)

    logger.debug("Executing: %s (cwd=%s)", command, context.cwd)
    start = time.monotonic()

    try:
        result = subprocess.run(
            argv,
            cwd=context.cwd,
            env=dict(env if env is not None else context.env),
            capture_output=not interactive,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command not found: {argv[0]}",
            metadata={"command": command, "return_code": 127},
        )
    except subprocess.TimeoutExpired:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command timed out after {timeout}s",
            metadata={"command": command, "timeout": timeout},
        )
    except OSError as e:
        return Receipt.failure(
            adapter=adapter,
            action_id=action_id,
            error=f"Command execution error: {e}",
            metadata={"command": command},
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    output = (result.stdout or "").strip()
    stderr = (result.stderr or "").strip()

    if result.returncode == 0:
        return Receipt.success(
            adapter=adapter,
            action_id=action_id,
            output=output,
            duration_ms=elapsed_ms,
            metadata={
                "command": command,
                "return_code": 0,
                "stderr": stderr,
            },
        )
    return Receipt.failure(
        adapter=adapter,
        action_id=action_id,
        error=stderr or f"Command exited with code {result.returncode}",
        duration_ms=elapsed_ms,
        metadata={
            "command": command,
            "return_code": result.returncode,
            "stdout": output,
        },
    )


def exec_replace(argv: list[str], env: Mapping[str, str]) -> NoReturn:
    """Replace the current process image with *argv*."""
    logger.debug("exec: %s", shlex.join(argv))
    os.execvpe(argv[0], argv, dict(env))


class ShellCommandAdapter(Adapter):
    """Execute commands given as argument vectors.

    Action params:
        argv (list[str]): The command to execute.
        interactive (bool): Attach to the terminal (default: False).
        timeout (int | None): Timeout in seconds (default: none).
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.action.params.get("argv")
        if not argv or not isinstance(argv, list):
            return False, "Missing required param: 'argv'"
        if not all(isinstance(a, str) for a in argv):
            return False, "Param 'argv' must be a list of strings"

        if context.cwd and not Path(context.cwd).is_dir():
            return False, f"Working directory does not exist: {context.cwd}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        return run_argv(self.name, context)
