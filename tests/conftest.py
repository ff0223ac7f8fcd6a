"""
Shared test fixtures and configuration.

Host state lives under ``tmp_path``: a fake home directory and a fake
``bin`` directory that is the whole search path.  External commands go
to a MockAdapter through a registry in mock mode.
"""

from pathlib import Path

import pytest

from yukoloader.adapters.mock import MockAdapter
from yukoloader.adapters.registry import AdapterRegistry
from yukoloader.core.context import HostContext
from yukoloader.core.engine.runtime import StageRuntime
from yukoloader.core.models.action import Receipt
from yukoloader.core.models.settings import BootstrapSettings


class ScriptedPrompter:
    """Prompter that answers from a script and records every question."""

    def __init__(self, confirm: bool = True, answers: dict[str, str] | None = None):
        self.confirm_answer = confirm
        self.answers = answers or {}
        self.asked: list[str] = []

    def confirm(self, question: str) -> bool:
        self.asked.append(question)
        return self.confirm_answer

    def ask(self, question: str, default: str) -> str:
        self.asked.append(question)
        return self.answers.get(question, default)


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """Return a temporary home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def bin_dir(tmp_path: Path) -> Path:
    """Return the directory that makes up the test search path."""
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def make_exe(bin_dir: Path):
    """Create a fake executable (default: in ``bin_dir``)."""

    def _make(name: str, directory: Path | None = None) -> Path:
        directory = directory or bin_dir
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text("#!/bin/sh\nexit 0\n")
        path.chmod(0o755)
        return path

    return _make


@pytest.fixture
def host(home: Path, bin_dir: Path) -> HostContext:
    return HostContext(
        env={"PATH": str(bin_dir), "HOME": str(home), "USER": "yuko"},
        home=home,
        user="yuko",
        uid=1000,
    )


@pytest.fixture
def mock_adapter() -> MockAdapter:
    return MockAdapter()


@pytest.fixture
def registry(mock_adapter: MockAdapter) -> AdapterRegistry:
    reg = AdapterRegistry()
    reg.set_mock_mode(True, mock_adapter=mock_adapter)
    return reg


@pytest.fixture
def prompter() -> ScriptedPrompter:
    return ScriptedPrompter()


@pytest.fixture
def settings() -> BootstrapSettings:
    return BootstrapSettings()


@pytest.fixture
def runtime(host, settings, registry, prompter) -> StageRuntime:
    return StageRuntime(ctx=host, settings=settings, registry=registry, prompter=prompter)


@pytest.fixture
def installs(mock_adapter: MockAdapter, make_exe):
    """Script a command so that running it puts *name* on the search path."""

    def _installs(prefix: str, name: str, directory: Path | None = None) -> None:
        def handler(ctx):
            make_exe(name, directory)
            return Receipt.success(
                adapter="mock", action_id=ctx.action.id, metadata={"return_code": 0},
            )

        mock_adapter.set_handler(prefix, handler)

    return _installs


@pytest.fixture
def provisioned(home: Path, make_exe) -> Path:
    """A host that already has every tool and a checkout; returns the clone dir."""
    for name in ("curl", "nix", "git", "tmux"):
        make_exe(name)
    clone_dir = home / ".yuko"
    (clone_dir / ".git").mkdir(parents=True)
    return clone_dir
