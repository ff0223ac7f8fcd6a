"""
Mock adapter — scripted test double for every external command.

Responses are keyed by command prefix: ``"git ls-remote"`` matches any
``git ls-remote ...`` invocation.  The longest matching prefix wins.
Unmatched commands succeed with the default output.
"""

from __future__ import annotations

import shlex
from typing import Callable

from yukoloader.adapters.base import Adapter, ExecutionContext
from yukoloader.core.models.action import Receipt

Handler = Callable[[ExecutionContext], Receipt]


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, returns success for everything. Can be configured
    with custom responses or handlers per command prefix.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._handlers: dict[str, Handler] = {}
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    @property
    def commands(self) -> list[str]:
        """Every executed command, joined for easy assertions."""
        return [shlex.join(ctx.argv) for ctx in self._call_log]

    def called(self, prefix: str) -> bool:
        """Whether any executed command starts with *prefix*."""
        return any(c.startswith(prefix) for c in self.commands)

    def is_available(self) -> bool:
        return self._available

    def set_handler(self, prefix: str, handler: Handler) -> None:
        """Compute the receipt for matching commands with *handler*."""
        self._handlers[prefix] = handler

    def set_response(self, prefix: str, receipt: Receipt) -> None:
        """Return a fixed receipt for matching commands."""
        self._handlers[prefix] = lambda ctx: receipt.model_copy(
            update={"action_id": ctx.action.id}
        )

    def set_output(self, prefix: str, output: str) -> None:
        """Succeed with *output* for matching commands."""
        self.set_response(
            prefix, Receipt.success(adapter=self._name, action_id="", output=output,
                                    metadata={"return_code": 0})
        )

    def set_failure(self, prefix: str, error: str = "Mock failure", return_code: int = 1) -> None:
        """Configure matching commands to fail."""
        self.set_response(
            prefix,
            Receipt.failure(
                adapter=self._name,
                action_id="",
                error=error,
                metadata={"return_code": return_code},
            ),
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)

        command = shlex.join(context.argv)
        matches = [p for p in self._handlers if command.startswith(p)]
        if matches:
            return self._handlers[max(matches, key=len)](context)

        # Default: success
        return Receipt.success(
            adapter=self._name,
            action_id=context.action.id,
            output=self._default_output,
            metadata={"mock": True, "return_code": 0},
        )

    def reset(self) -> None:
        """Clear call log and custom responses."""
        self._call_log.clear()
        self._handlers.clear()
