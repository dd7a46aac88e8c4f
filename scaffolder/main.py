"""
Scaffolder — CLI entrypoint.

Usage:
    scaffolder --help
    scaffolder apply ./myapp
    scaffolder validate --recipe scaffold.yml
    scaffolder show --builtin rails
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from scaffolder import __version__
from scaffolder.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    resolve_level,
    setup_logging,
)
from scaffolder.core.persistence.audit import ENV_AUDIT_LOG

_recipe_option = click.option(
    "--recipe", "-r", "recipe_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Recipe file (default: scaffold.yml found upward, else the 'rails' built-in).",
)
_builtin_option = click.option(
    "--builtin", "-b", default=None, help="Use a built-in recipe by name.",
)


@click.group()
@click.version_option(version=__version__, prog_name="scaffolder")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """Scaffolder — apply a bootstrap recipe to a freshly generated project."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(ENV_LOG_FILE),
        log_file_level=os.environ.get(ENV_LOG_FILE_LEVEL),
    )


@cli.command()
@click.argument(
    "project_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
)
@_recipe_option
@_builtin_option
@click.option("--dry-run", is_flag=True, help="Validate and show, but change nothing.")
@click.option("--mock", is_flag=True, help="Use mock adapters (no process is started).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--audit-log",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    envvar=ENV_AUDIT_LOG,
    help=f"Append a run record to this NDJSON file (env: {ENV_AUDIT_LOG}).",
)
@click.pass_context
def apply(
    ctx: click.Context,
    project_dir: Path,
    recipe_path: Path | None,
    builtin: str | None,
    dry_run: bool,
    mock: bool,
    as_json: bool,
    audit_log: Path | None,
) -> None:
    """Apply a recipe to PROJECT_DIR (default: current directory).

    Examples:

        scaffolder apply ./myapp

        scaffolder apply ./myapp --recipe scaffold.yml --dry-run
    """
    from scaffolder.core.use_cases.apply import run_apply

    result = run_apply(
        project_root=project_dir,
        recipe_path=recipe_path,
        builtin=builtin,
        dry_run=dry_run,
        mock_mode=mock,
        audit_path=audit_log,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    report = result.report
    if report is None:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)

    quiet = ctx.obj.get("quiet", False)
    mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""

    if not quiet:
        click.secho(
            f"\n⚡ {mode_label}{report.recipe_name} → {report.project_root}",
            fg="cyan", bold=True,
        )
        click.echo(f"   Recipe: {result.recipe_source}")
        for stage in report.stages:
            if stage.value in ("done", "failed"):
                continue
            failed = stage is report.failed_stage
            click.secho(f"   {'✗' if failed else '✓'} {stage.value}",
                        fg="red" if failed else "green")
        click.echo(
            f"   Manifest lines: {report.lines_written} | "
            f"Patches: {report.patches_applied} | "
            f"Processes: {len(report.receipts)}"
        )

    if report.ok:
        click.secho("   Result: done", fg="green", bold=True)
        click.echo()
        return

    click.secho(f"   Result: failed in {report.failed_stage.value}", fg="red", bold=True, err=True)
    click.secho(f"   {report.error}", fg="red", err=True)
    click.echo("   The project directory was left as-is for inspection.", err=True)
    click.echo()
    sys.exit(report.exit_code)


@cli.command()
@_recipe_option
@_builtin_option
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def validate(recipe_path: Path | None, builtin: str | None, as_json: bool) -> None:
    """Check a recipe against the static rules."""
    from scaffolder.core.errors import InvalidRecipe
    from scaffolder.core.use_cases.apply import resolve_recipe

    try:
        recipe, source = resolve_recipe(recipe_path, builtin)
    except InvalidRecipe as e:
        if as_json:
            click.echo(json.dumps({"valid": False, "source": e.source, "problems": e.problems}, indent=2))
        else:
            click.secho("❌ Recipe errors:", fg="red", bold=True)
            for problem in e.problems:
                click.echo(f"   • {problem}")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps({"valid": True, "source": source, "recipe": recipe.name}, indent=2))
        return

    click.secho("✅ Recipe is valid", fg="green", bold=True)
    click.echo(f"   Recipe: {recipe.name} ({source})")
    click.echo(f"   Dependencies: {recipe.dependency_count} in {len(recipe.dependency_groups)} groups")
    click.echo(f"   Patches: {len(recipe.config_patches)}")
    click.echo(f"   Hooks: {len(recipe.after_create)}")


@cli.command()
@_recipe_option
@_builtin_option
@click.option("--yaml", "as_yaml", is_flag=True, help="Print the recipe as long-form YAML.")
def show(recipe_path: Path | None, builtin: str | None, as_yaml: bool) -> None:
    """Show what a recipe would do."""
    from scaffolder.adapters import default_registry
    from scaffolder.core.config.loader import dump_recipe
    from scaffolder.core.errors import InvalidRecipe
    from scaffolder.core.services.manifest import render_group
    from scaffolder.core.use_cases.apply import resolve_recipe

    try:
        recipe, source = resolve_recipe(recipe_path, builtin)
    except InvalidRecipe as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if as_yaml:
        click.echo(dump_recipe(recipe), nl=False)
        return

    click.secho(f"\n📋 {recipe.name}", fg="cyan", bold=True)
    if recipe.description:
        click.echo(f"   {recipe.description}")
    click.echo(f"   Source: {source}")

    click.echo()
    click.secho(f"   {recipe.manifest} (appended):", fg="white", bold=True)
    for group in recipe.dependency_groups:
        for line in render_group(group).splitlines():
            click.echo(f"     │ {line}")

    if recipe.config_patches:
        click.echo()
        click.secho("   Config patches:", fg="white", bold=True)
        for patch in recipe.config_patches:
            where = f" after {patch.anchor!r}" if patch.anchor else ""
            click.echo(f"     • {patch.target} [{patch.mode.value}{where}]")
            for line in patch.content.splitlines():
                click.echo(f"       │ {line}")

    if recipe.install:
        click.echo()
        click.secho("   Install:", fg="white", bold=True)
        click.echo(f"     $ {recipe.install.command}")

    if recipe.after_create:
        click.echo()
        click.secho("   After create:", fg="white", bold=True)
        for index, hook in enumerate(recipe.after_create):
            click.echo(f"     {index}. {hook.label}")

    click.echo()
    click.secho("   Tools:", fg="white", bold=True)
    for name, info in default_registry().adapter_status().items():
        mark = "✓" if info["available"] else "✗ not found"
        click.echo(f"     {name}: {mark}")

    click.echo()


@cli.command()
def recipes() -> None:
    """List built-in recipes."""
    from scaffolder.core.data import DEFAULT_RECIPE, list_builtin_recipes

    for name in list_builtin_recipes():
        default = " (default)" if name == DEFAULT_RECIPE else ""
        click.echo(f"{name}{default}")


if __name__ == "__main__":
    cli()
