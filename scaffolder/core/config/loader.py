"""
Recipe loader — reads scaffold.yml files into Recipe models.

YAML is parsed with ``yaml.safe_load``, a few compact shorthands are
expanded, the result is validated against the Pydantic schema and
then against the static recipe rules. Any problem surfaces as
``InvalidRecipe`` before anything touches the project.

Shorthands:

    entries: ["rspec", "web-console >= 3.3.0", {"shoulda-matchers": "~> 3.1"}]
    name: [development, test]           # same as "development,test"
    install: bundle install             # same as {command: bundle install}
    after_create:
      - generate rspec:install
      - git init
      - git add .
      - git commit: Initial commit
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from scaffolder.core.errors import InvalidRecipe
from scaffolder.core.models.recipe import Recipe, validate_recipe

logger = logging.getLogger(__name__)

# Default recipe filename
RECIPE_FILE = "scaffold.yml"

_SPEC_RE = re.compile(r"^(?P<name>[^\s<>=~!,]+)\s*,?\s*(?P<version>(?:~>|[<>=!]=?|=).*)?$")


def find_recipe_file(start_dir: Path | None = None) -> Path | None:
    """Search for scaffold.yml starting from the given directory, walking up."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / RECIPE_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_recipe(path: Path) -> Recipe:
    """Load and validate a recipe file.

    Raises:
        InvalidRecipe: If the file is missing, unreadable, not YAML,
            off-schema, or breaks a static rule.
    """
    source = str(path)
    if not path.is_file():
        raise InvalidRecipe([f"recipe file not found: {path}"], source=source)

    logger.debug("Loading recipe from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InvalidRecipe([f"cannot read file: {e}"], source=source) from e
    except UnicodeDecodeError as e:
        raise InvalidRecipe([f"not valid UTF-8: {e}"], source=source) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise InvalidRecipe([f"invalid YAML: {e}"], source=source) from e

    recipe = parse_recipe(data, source=source)
    logger.info(
        "Loaded recipe '%s': %d dependencies, %d patches, %d hooks",
        recipe.name, recipe.dependency_count,
        len(recipe.config_patches), len(recipe.after_create),
    )
    return recipe


def parse_recipe(data: Any, source: str = "") -> Recipe:
    """Build a validated Recipe from already-parsed data."""
    if not isinstance(data, dict):
        raise InvalidRecipe(
            [f"expected a mapping, got {type(data).__name__}"], source=source,
        )

    problems: list[str] = []
    normalized = _normalize(data, problems)
    if problems:
        raise InvalidRecipe(problems, source=source)

    try:
        recipe = Recipe.model_validate(normalized)
    except ValidationError as e:
        raise InvalidRecipe(_format_validation_errors(e), source=source) from e

    return validate_recipe(recipe, source=source)


def dump_recipe(recipe: Recipe) -> str:
    """Serialize a recipe back to YAML (long form)."""
    data = recipe.model_dump(mode="json", exclude_none=True)
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)


# ── Shorthand expansion ─────────────────────────────────────────────


def _normalize(data: dict[str, Any], problems: list[str]) -> dict[str, Any]:
    result = dict(data)

    groups = result.get("dependency_groups")
    if groups is not None:
        if not isinstance(groups, list):
            problems.append("dependency_groups: expected a list")
        else:
            result["dependency_groups"] = [
                _normalize_group(g, f"dependency_groups[{i}]", problems)
                for i, g in enumerate(groups)
            ]

    install = result.get("install")
    if isinstance(install, str):
        result["install"] = {"command": install}

    hooks = result.get("after_create")
    if hooks is not None:
        if not isinstance(hooks, list):
            problems.append("after_create: expected a list")
        else:
            result["after_create"] = [
                _normalize_hook(h, f"after_create[{i}]", problems)
                for i, h in enumerate(hooks)
            ]

    return result


def _normalize_group(group: Any, label: str, problems: list[str]) -> Any:
    if not isinstance(group, dict):
        problems.append(f"{label}: expected a mapping")
        return group

    result = dict(group)
    name = result.get("name")
    if isinstance(name, list):
        result["name"] = ",".join(str(n) for n in name)

    entries = result.get("entries")
    if entries is None:
        result["entries"] = []
    elif isinstance(entries, list):
        result["entries"] = [parse_dependency(e) for e in entries]
    else:
        problems.append(f"{label}.entries: expected a list")
    return result


def parse_dependency(entry: Any) -> Any:
    """Expand ``"name op version"`` or ``{name: version}`` into a spec mapping."""
    if isinstance(entry, str):
        text = entry.strip()
        match = _SPEC_RE.match(text)
        if match is None:
            return {"name": text}
        version = (match.group("version") or "").strip()
        return {"name": match.group("name"), "version": version or None}
    if isinstance(entry, dict) and len(entry) == 1 and "name" not in entry:
        (name, version), = entry.items()
        return {"name": str(name), "version": str(version) if version else None}
    return entry


def _normalize_hook(hook: Any, label: str, problems: list[str]) -> Any:
    if isinstance(hook, str):
        words = hook.split(None, 1)
        verb = words[0] if words else ""
        rest = words[1].strip() if len(words) > 1 else ""

        if verb == "generate":
            return {"kind": "generate", "name": rest}
        if verb == "git":
            if rest == "init":
                return {"kind": "git_init"}
            if rest in (".", "add .", "add -A", "add --all"):
                return {"kind": "git_add_all"}
        problems.append(f"{label}: unknown hook '{hook}'")
        return hook

    if isinstance(hook, dict) and "kind" not in hook and len(hook) == 1:
        (key, value), = hook.items()
        if key == "generate":
            return {"kind": "generate", "name": str(value)}
        if key in ("git commit", "commit"):
            return {"kind": "git_commit", "message": str(value)}
        problems.append(f"{label}: unknown hook '{key}'")

    return hook


def _format_validation_errors(error: ValidationError) -> list[str]:
    messages = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return messages
