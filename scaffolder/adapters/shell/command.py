"""
Shell command adapter — run an external command in the project root.

The child inherits stdin, stdout and stderr so interactive tools (a
package manager asking for confirmation, say) behave as if run by
hand. The call blocks until the child exits. There is no timeout
unless the action sets one.

The adapter reports the exit status; it does not judge it.
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
import time
from pathlib import Path

from scaffolder.adapters.base import Adapter, ExecutionContext
from scaffolder.core.models.action import Receipt

logger = logging.getLogger(__name__)


class ShellCommandAdapter(Adapter):
    """Execute a command with inherited standard streams.

    Action params:
        command (str): The command to execute.
        shell (bool): Run through ``sh -c`` (default: False, argv split).
        timeout (int | None): Timeout in seconds (default: none).
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        command = context.action.params.get("command", "")
        if not command or not command.strip():
            return False, "Missing required param: 'command'"

        if not Path(context.working_dir).is_dir():
            return False, f"Working directory does not exist: {context.working_dir}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        return self._run(
            context,
            context.action.params["command"],
            use_shell=context.action.params.get("shell", False),
            timeout=context.action.params.get("timeout"),
        )

    def _run(
        self,
        context: ExecutionContext,
        command: str,
        use_shell: bool = False,
        timeout: int | None = None,
    ) -> Receipt:
        cwd = context.working_dir
        logger.debug("Executing: %s (cwd=%s)", command, cwd)
        start = time.monotonic()

        try:
            argv: str | list[str] = command if use_shell else shlex.split(command)
            result = subprocess.run(argv, shell=use_shell, cwd=cwd, timeout=timeout)
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": command, "timeout": timeout, "timed_out": True},
            )
        except (OSError, ValueError) as e:
            # not found, not executable, unbalanced quotes
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Cannot start command: {e}",
                metadata={"command": command, "spawn_error": True},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        metadata = {"command": command, "return_code": result.returncode}

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                duration_ms=elapsed_ms,
                metadata=metadata,
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=f"Command exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata=metadata,
        )
