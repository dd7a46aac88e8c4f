"""
Error taxonomy — everything that can stop a recipe application.

Adapters never raise (failures come back as receipts). The engine
turns failed receipts and file errors into these exceptions and
records the first one on the pipeline report. Nothing is retried
and nothing is recovered locally.
"""

from __future__ import annotations

from typing import Any


class ScaffoldError(Exception):
    """Base class for all recipe application errors."""

    exit_code: int = 1


class InvalidRecipe(ScaffoldError):
    """The recipe violates a static rule. Raised before any side effect."""

    def __init__(self, problems: list[str], source: str = ""):
        self.problems = list(problems)
        self.source = source
        where = f" ({source})" if source else ""
        detail = "; ".join(self.problems) if self.problems else "unknown problem"
        super().__init__(f"Invalid recipe{where}: {detail}")


class RecipeIOError(ScaffoldError):
    """A project file could not be read or written."""

    def __init__(self, path: Any, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class ManifestWriteError(RecipeIOError):
    """The dependency manifest could not be written."""


class ConfigPatchError(RecipeIOError):
    """A configuration patch could not be applied."""


class SpawnError(ScaffoldError):
    """The external executable could not be started."""

    def __init__(self, command: str, reason: str):
        self.command = command
        self.reason = reason
        super().__init__(f"Cannot start '{command}': {reason}")


class StepFailed(ScaffoldError):
    """The external process ran but exited non-zero."""

    def __init__(self, command: str, return_code: int, detail: str = ""):
        self.command = command
        self.return_code = return_code
        self.detail = detail
        message = f"'{command}' exited with code {return_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        """The child's exit status, or 128 + N when killed by signal N."""
        if self.return_code < 0:
            return 128 - self.return_code
        return self.return_code


class HookError(ScaffoldError):
    """An after-create hook failed. Wraps the underlying cause."""

    def __init__(self, index: int, hook: Any, cause: ScaffoldError):
        self.index = index
        self.hook = hook
        self.cause = cause
        label = getattr(hook, "label", str(hook))
        super().__init__(f"Hook #{index} ({label}) failed: {cause}")

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return self.cause.exit_code
