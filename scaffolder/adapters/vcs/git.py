"""
Git adapter — version control operations for after-create hooks.

Provides ``init``, ``add`` and ``commit`` through the adapter protocol,
using the git CLI in the project root. Output is captured and kept on
the receipt.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time

from scaffolder.adapters.base import Adapter, ExecutionContext
from scaffolder.core.models.action import Receipt

logger = logging.getLogger(__name__)


class GitAdapter(Adapter):
    """Git version control operations.

    Action params:
        operation (str): One of 'init', 'add', 'commit'.
        paths (list[str]): Paths to stage (for 'add', default: ['.']).
        message (str): Commit message (for 'commit').
        timeout (int): Timeout in seconds (default: none).
    """

    VALID_OPERATIONS = frozenset({"init", "add", "commit"})

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        operation = context.action.params.get("operation", "")
        if not operation:
            return False, "Missing required param: 'operation'"

        if operation not in self.VALID_OPERATIONS:
            valid = ", ".join(sorted(self.VALID_OPERATIONS))
            return False, f"Unknown operation '{operation}'. Valid: {valid}"

        if operation == "commit" and not context.action.params.get("message", ""):
            return False, "Missing required param: 'message' for commit operation"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        operation = params["operation"]

        if operation == "init":
            args = ["init"]
        elif operation == "add":
            args = ["add", *(params.get("paths") or ["."])]
        elif operation == "commit":
            args = ["commit", "-m", params["message"]]
        else:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Unknown operation: {operation}",
            )

        return self._git(context, args, timeout=params.get("timeout"))

    # ── Helpers ─────────────────────────────────────────────────

    def _git(self, ctx: ExecutionContext, args: list[str], timeout: int | None = None) -> Receipt:
        """Run a git command and turn the outcome into a receipt."""
        command = " ".join(["git", *args])
        logger.debug("Executing: %s (cwd=%s)", command, ctx.working_dir)
        start = time.monotonic()

        try:
            result = subprocess.run(
                ["git", *args],
                cwd=ctx.working_dir,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": command, "timeout": timeout, "timed_out": True},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=ctx.action.id,
                error=f"Cannot start git: {e}",
                metadata={"command": command, "spawn_error": True},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        metadata = {"command": command, "return_code": result.returncode}

        if result.returncode == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=ctx.action.id,
                output=result.stdout.strip(),
                duration_ms=elapsed_ms,
                metadata=metadata,
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=ctx.action.id,
            error=result.stderr.strip() or f"git {args[0]} exited with code {result.returncode}",
            duration_ms=elapsed_ms,
            metadata={**metadata, "stdout": result.stdout.strip()},
        )
