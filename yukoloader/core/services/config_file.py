"""
Idempotent config-file writer.

Guarantees a directive line appears exactly once in a text file while
leaving every other line, and their order, untouched.

    | file exists | line present | action                 |
    |-------------|--------------|------------------------|
    | no          | n/a          | create file with line  |
    | yes         | yes          | nothing                |
    | yes         | no           | append line + newline  |
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

logger = logging.getLogger(__name__)

LineAction = Literal["created", "appended", "present"]


def has_line(path: Path, line: str) -> bool:
    """Exact whole-line match; a line that merely contains *line* does not count."""
    if not path.is_file():
        return False
    content = path.read_text(encoding="utf-8")
    return any(existing.rstrip("\r") == line for existing in content.split("\n"))


def ensure_line(path: Path, line: str) -> LineAction:
    """Make sure *line* is present in *path*.

    Args:
        path: Config file; created (with parents) when missing.
        line: The directive, without a trailing newline.

    Returns:
        What was done: 'created', 'appended' or 'present'.
    """
    line = line.rstrip("\n")
    if not line or "\n" in line:
        raise ValueError(f"Expected a single non-empty line, got {line!r}")

    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(line + "\n", encoding="utf-8")
        logger.info("Created %s", path)
        return "created"

    if has_line(path, line):
        logger.info("%s already contains %r", path, line)
        return "present"

    content = path.read_text(encoding="utf-8")
    separator = "" if not content or content.endswith("\n") else "\n"
    with path.open("a", encoding="utf-8") as f:
        f.write(f"{separator}{line}\n")
    logger.info("Appended %r to %s", line, path)
    return "appended"


def ensure_lines(path: Path, lines: list[str]) -> list[LineAction]:
    """``ensure_line`` for each of *lines*, in order."""
    return [ensure_line(path, line) for line in lines]
