"""
Apply use case — resolve a recipe and apply it to a project.

The full vertical slice from CLI intent to audited execution:
resolve the recipe (file, built-in, or scaffold.yml found upward),
set up adapters, run the pipeline, append to the audit ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from scaffolder.adapters import default_registry
from scaffolder.adapters.registry import AdapterRegistry
from scaffolder.core.config.loader import find_recipe_file, load_recipe
from scaffolder.core.data import DEFAULT_RECIPE, builtin_recipe
from scaffolder.core.engine.pipeline import PipelineReport, Stage, apply_recipe
from scaffolder.core.errors import InvalidRecipe
from scaffolder.core.models.recipe import Recipe
from scaffolder.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    """Result of applying a recipe."""

    report: PipelineReport | None = None
    recipe: Recipe | None = None
    recipe_source: str = ""
    error: str | None = None
    exit_code: int = 0

    def to_dict(self) -> dict:
        result: dict = {"recipe_source": self.recipe_source, "exit_code": self.exit_code}
        if self.error:
            result["error"] = self.error
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def resolve_recipe(
    recipe_path: Path | None = None,
    builtin: str | None = None,
    search_from: Path | None = None,
) -> tuple[Recipe, str]:
    """Pick the recipe to apply.

    Order: explicit file, named built-in, scaffold.yml found upward
    from ``search_from``, then the default built-in.

    Raises:
        InvalidRecipe: The chosen recipe cannot be loaded.
    """
    if recipe_path is not None:
        return load_recipe(recipe_path), str(recipe_path)
    if builtin:
        return builtin_recipe(builtin), f"builtin:{builtin}"

    found = find_recipe_file(search_from)
    if found is not None:
        logger.info("Using recipe file %s", found)
        return load_recipe(found), str(found)

    return builtin_recipe(DEFAULT_RECIPE), f"builtin:{DEFAULT_RECIPE}"


def run_apply(
    project_root: Path,
    recipe_path: Path | None = None,
    builtin: str | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    audit_path: Path | None = None,
    registry: AdapterRegistry | None = None,
) -> ApplyResult:
    """Apply a recipe to ``project_root``.

    Args:
        project_root: Existing project directory.
        recipe_path: Explicit recipe file.
        builtin: Name of a built-in recipe.
        dry_run: Validate and log, change nothing.
        mock_mode: Use mock adapters (no process is started).
        audit_path: Append a ledger entry here when given.
        registry: Optional pre-configured adapter registry.

    Returns:
        ApplyResult with the pipeline report.
    """
    result = ApplyResult()
    project_root = project_root.resolve()

    try:
        recipe, source = resolve_recipe(recipe_path, builtin, search_from=project_root)
    except InvalidRecipe as e:
        result.error = str(e)
        result.exit_code = e.exit_code
        return result

    result.recipe = recipe
    result.recipe_source = source

    if registry is None:
        registry = default_registry(mock_mode=mock_mode)

    report = apply_recipe(recipe, project_root, registry, dry_run=dry_run)
    result.report = report
    result.exit_code = report.exit_code
    if report.error is not None:
        result.error = str(report.error)

    if audit_path is not None:
        write_audit_entry(report, AuditWriter(audit_path), source)

    return result


def write_audit_entry(report: PipelineReport, writer: AuditWriter, source: str = "") -> None:
    """Record one pipeline run in the audit ledger."""
    entry = AuditEntry(
        operation_id=report.operation_id,
        recipe=report.recipe_name,
        project_root=report.project_root,
        dry_run=report.dry_run,
        status=report.status,
        exit_code=report.exit_code,
        stages=[s.value for s in report.stages if s is not Stage.FAILED],
        failed_stage=report.failed_stage.value if report.failed_stage else None,
        error=str(report.error) if report.error else None,
        lines_written=report.lines_written,
        patches_applied=report.patches_applied,
        actions_total=len(report.receipts),
        actions_failed=sum(1 for r in report.receipts if r.failed),
        context={"recipe_source": source} if source else {},
    )
    writer.write(entry)
