"""
Hook executor — run after-create actions strictly in order.

Each hook becomes an ``Action`` dispatched through the adapter
registry: generators go to the ``generator`` adapter, version control
to ``git``. The first failed receipt stops the sequence with a
``HookError`` naming the hook index. Completed hooks are not undone.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

from scaffolder.adapters.registry import AdapterRegistry
from scaffolder.core.errors import HookError, ScaffoldError, SpawnError, StepFailed
from scaffolder.core.models.action import Action, Receipt
from scaffolder.core.models.recipe import (
    HookAction,
    RunGenerator,
    VcsAddAll,
    VcsCommit,
    VcsInit,
)

logger = logging.getLogger(__name__)


def hook_action(
    hook: HookAction,
    index: int,
    operation_id: str = "",
    generator_command: str = "",
) -> Action:
    """Translate a hook into the action the registry dispatches."""
    action_id = f"{operation_id}:hook:{index}" if operation_id else f"hook:{index}"

    if isinstance(hook, RunGenerator):
        params = {"generator": hook.name}
        if generator_command:
            params["generator_command"] = generator_command
        return Action(id=action_id, name=hook.label, adapter="generator",
                      stage="running_hooks", params=params)
    if isinstance(hook, VcsInit):
        return Action(id=action_id, name=hook.label, adapter="git",
                      stage="running_hooks", params={"operation": "init"})
    if isinstance(hook, VcsAddAll):
        return Action(id=action_id, name=hook.label, adapter="git",
                      stage="running_hooks", params={"operation": "add", "paths": ["."]})
    if isinstance(hook, VcsCommit):
        return Action(id=action_id, name=hook.label, adapter="git",
                      stage="running_hooks",
                      params={"operation": "commit", "message": hook.message})
    raise TypeError(f"Unsupported hook: {hook!r}")


def receipt_error(receipt: Receipt, command: str) -> ScaffoldError:
    """Classify a failed receipt: never started, or ran and failed."""
    if receipt.spawn_error:
        return SpawnError(command, receipt.error or "could not start")
    code = receipt.return_code
    if code is None or code == 0:
        code = 1
    return StepFailed(command, code, receipt.error or "")


def run_hooks(
    hooks: Sequence[HookAction],
    registry: AdapterRegistry,
    project_root: Path,
    *,
    operation_id: str = "",
    generator_command: str = "",
    dry_run: bool = False,
    on_receipt: Callable[[Receipt], None] | None = None,
) -> list[Receipt]:
    """Execute hooks in order, stopping at the first failure.

    Returns:
        One receipt per executed hook.

    Raises:
        HookError: The failing hook's index and underlying cause.
    """
    receipts: list[Receipt] = []

    for index, hook in enumerate(hooks):
        action = hook_action(hook, index, operation_id, generator_command)
        receipt = registry.execute_action(action, project_root=str(project_root), dry_run=dry_run)
        receipts.append(receipt)
        if on_receipt is not None:
            on_receipt(receipt)

        status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
        logger.info("%s hook #%d %s → %s", status_marker, index, hook.label, receipt.status)

        if receipt.failed:
            raise HookError(index, hook, receipt_error(receipt, hook.label))

    return receipts
