"""
Mock adapter — recording test double for process adapters.

Stands in for the shell, generator or git adapter without starting
anything. Every execution is recorded; individual actions can be made
to fail with a chosen exit code, matched by action id or action name
(e.g. ``"git init"``).
"""

from __future__ import annotations

from scaffolder.adapters.base import Adapter, ExecutionContext
from scaffolder.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, returns success (exit code 0) for everything.
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
        self._responses: dict[str, Receipt] = {}
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
    def executed(self) -> list[str]:
        """Names of executed actions, in order."""
        return [ctx.action.name or ctx.action.id for ctx in self._call_log]

    def is_available(self) -> bool:
        return self._available

    def set_response(self, key: str, receipt: Receipt) -> None:
        """Set a custom response for an action id or action name."""
        self._responses[key] = receipt

    def set_failure(
        self,
        key: str,
        error: str = "Mock failure",
        return_code: int = 1,
    ) -> None:
        """Make an action (by id or name) exit with ``return_code``."""
        self._responses[key] = Receipt.failure(
            adapter=self._name,
            action_id=key,
            error=error,
            metadata={"return_code": return_code, "mock": True},
        )

    def set_spawn_failure(self, key: str, error: str = "executable not found") -> None:
        """Make an action (by id or name) fail to start."""
        self._responses[key] = Receipt.failure(
            adapter=self._name,
            action_id=key,
            error=error,
            metadata={"spawn_error": True, "mock": True},
        )

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)

        action = context.action
        for key in (action.id, action.name):
            if key and key in self._responses:
                return self._responses[key].model_copy(update={"action_id": action.id})

        return Receipt.success(
            adapter=self._name,
            action_id=action.id,
            output=self._default_output,
            metadata={"mock": True, "return_code": 0},
        )
