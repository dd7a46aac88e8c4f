"""
Pipeline orchestrator — apply a recipe, one stage at a time.

Stages are strictly linear:

    validating → writing_dependencies → patching_config
        → installing_packages → running_hooks → done

Any error moves the pipeline to ``failed`` and nothing after it runs.
There are no retries and no rollback: the project directory keeps
whatever the completed stages did, so it can be inspected.

The project root is an explicit argument to every stage. The process
working directory is never changed.
"""

from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from scaffolder.adapters.registry import AdapterRegistry
from scaffolder.core.errors import RecipeIOError, ScaffoldError
from scaffolder.core.models.action import Action, Receipt
from scaffolder.core.models.recipe import Recipe, validate_recipe
from scaffolder.core.services.config_patch import apply_patch, resolve_target
from scaffolder.core.services.hooks import receipt_error, run_hooks
from scaffolder.core.services.manifest import render_group, write_group

logger = logging.getLogger(__name__)


class Stage(str, enum.Enum):
    VALIDATING = "validating"
    WRITING_DEPENDENCIES = "writing_dependencies"
    PATCHING_CONFIG = "patching_config"
    INSTALLING_PACKAGES = "installing_packages"
    RUNNING_HOOKS = "running_hooks"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineReport:
    """What happened while applying a recipe."""

    operation_id: str = ""
    recipe_name: str = ""
    project_root: str = ""
    dry_run: bool = False

    stages: list[Stage] = field(default_factory=list)
    receipts: list[Receipt] = field(default_factory=list)
    lines_written: int = 0
    patches_applied: int = 0

    failed_stage: Stage | None = None
    error: ScaffoldError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.stages) and self.stages[-1] is Stage.DONE

    @property
    def status(self) -> str:
        return "ok" if self.ok else "failed"

    @property
    def state(self) -> Stage | None:
        """Current (final, once returned) state of the pipeline."""
        return self.stages[-1] if self.stages else None

    @property
    def exit_code(self) -> int:
        """0 on success, the failing process' code, or 1."""
        if self.ok:
            return 0
        if self.error is None:
            return 1
        return self.error.exit_code or 1

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "recipe": self.recipe_name,
            "project_root": self.project_root,
            "dry_run": self.dry_run,
            "status": self.status,
            "exit_code": self.exit_code,
            "stages": [s.value for s in self.stages],
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "error": str(self.error) if self.error else None,
            "error_type": type(self.error).__name__ if self.error else None,
            "lines_written": self.lines_written,
            "patches_applied": self.patches_applied,
            "receipts": [r.model_dump(mode="json") for r in self.receipts],
        }


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"


def apply_recipe(
    recipe: Recipe,
    project_root: Path,
    registry: AdapterRegistry,
    *,
    dry_run: bool = False,
    operation_id: str | None = None,
    on_stage: Callable[[Stage], None] | None = None,
) -> PipelineReport:
    """Apply a recipe to an existing project directory.

    Args:
        recipe: The recipe to apply. Never mutated.
        project_root: Directory created beforehand by the host tool.
        registry: Adapter registry used for every process action.
        dry_run: Validate and log what would happen; touch nothing.
        operation_id: Optional explicit id (generated otherwise).
        on_stage: Called with each stage as it is entered.

    Returns:
        PipelineReport. Errors are recorded on it, never raised.
    """
    project_root = Path(project_root)
    report = PipelineReport(
        operation_id=operation_id or generate_operation_id(),
        recipe_name=recipe.name,
        project_root=str(project_root),
        dry_run=dry_run,
    )

    def enter(stage: Stage) -> None:
        report.stages.append(stage)
        logger.info("[%s] → %s", report.operation_id, stage.value)
        if on_stage is not None:
            on_stage(stage)

    stages: list[tuple[Stage, Callable[[], None]]] = [
        (Stage.VALIDATING, lambda: _validate(recipe, project_root)),
        (Stage.WRITING_DEPENDENCIES, lambda: _write_dependencies(recipe, project_root, report)),
        (Stage.PATCHING_CONFIG, lambda: _patch_config(recipe, project_root, report)),
        (Stage.INSTALLING_PACKAGES, lambda: _install(recipe, project_root, registry, report)),
        (Stage.RUNNING_HOOKS, lambda: _hooks(recipe, project_root, registry, report)),
    ]

    for stage, run_stage in stages:
        enter(stage)
        try:
            run_stage()
        except ScaffoldError as e:
            report.failed_stage = stage
            report.error = e
            enter(Stage.FAILED)
            logger.error("✗ %s failed: %s", stage.value, e)
            return report

    enter(Stage.DONE)
    return report


# ── Stages ──────────────────────────────────────────────────────────


def _validate(recipe: Recipe, project_root: Path) -> None:
    validate_recipe(recipe)
    if not project_root.is_dir():
        raise RecipeIOError(project_root, "project directory does not exist")


def _write_dependencies(recipe: Recipe, project_root: Path, report: PipelineReport) -> None:
    manifest_path = project_root / recipe.manifest
    for group in recipe.dependency_groups:
        if report.dry_run:
            logger.info("[dry-run] would append to %s:%s", manifest_path, render_group(group))
            continue
        report.lines_written += write_group(group, manifest_path)
    logger.info(
        "%d dependencies in %d groups → %s",
        recipe.dependency_count, len(recipe.dependency_groups), manifest_path,
    )


def _patch_config(recipe: Recipe, project_root: Path, report: PipelineReport) -> None:
    for patch in recipe.config_patches:
        if report.dry_run:
            logger.info(
                "[dry-run] would %s %s: %s",
                patch.mode.value, resolve_target(patch, project_root), patch.content,
            )
            continue
        apply_patch(patch, project_root)
        report.patches_applied += 1


def _install(
    recipe: Recipe,
    project_root: Path,
    registry: AdapterRegistry,
    report: PipelineReport,
) -> None:
    step = recipe.install
    if step is None:
        logger.info("No install step")
        return

    action = Action(
        id=f"{report.operation_id}:install",
        name=step.command,
        adapter="shell",
        stage=Stage.INSTALLING_PACKAGES.value,
        params={"command": step.command, "shell": step.shell, "timeout": step.timeout},
    )
    receipt = registry.execute_action(action, project_root=str(project_root), dry_run=report.dry_run)
    report.receipts.append(receipt)

    status_marker = "✓" if receipt.ok else "✗" if receipt.failed else "⊘"
    logger.info("%s %s → %s", status_marker, step.command, receipt.status)

    if receipt.failed:
        raise receipt_error(receipt, step.command)


def _hooks(
    recipe: Recipe,
    project_root: Path,
    registry: AdapterRegistry,
    report: PipelineReport,
) -> None:
    run_hooks(
        recipe.after_create,
        registry,
        project_root,
        operation_id=report.operation_id,
        generator_command=recipe.generator_command,
        dry_run=report.dry_run,
        on_receipt=report.receipts.append,
    )
