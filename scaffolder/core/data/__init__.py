"""
Built-in recipes shipped with the package.

Recipes live in ``scaffolder/core/data/recipes/<name>.yml``.

Usage::

    from scaffolder.core.data import builtin_recipe, list_builtin_recipes

    recipe = builtin_recipe("rails")
"""

from __future__ import annotations

import logging
from pathlib import Path

from scaffolder.core.config.loader import load_recipe
from scaffolder.core.errors import InvalidRecipe
from scaffolder.core.models.recipe import Recipe

logger = logging.getLogger(__name__)

_RECIPES_DIR = Path(__file__).parent / "recipes"

DEFAULT_RECIPE = "rails"


def list_builtin_recipes() -> list[str]:
    """Names of all built-in recipes, sorted."""
    if not _RECIPES_DIR.is_dir():
        logger.warning("Recipes directory not found: %s", _RECIPES_DIR)
        return []
    return sorted(p.stem for p in _RECIPES_DIR.glob("*.yml"))


def builtin_recipe_path(name: str) -> Path:
    """Path of a built-in recipe file."""
    return _RECIPES_DIR / f"{name}.yml"


def builtin_recipe(name: str = DEFAULT_RECIPE) -> Recipe:
    """Load a built-in recipe by name.

    Raises:
        InvalidRecipe: Unknown name or broken recipe file.
    """
    path = builtin_recipe_path(name)
    if not path.is_file():
        available = ", ".join(list_builtin_recipes()) or "none"
        raise InvalidRecipe(
            [f"no built-in recipe named '{name}' (available: {available})"],
            source=name,
        )
    return load_recipe(path)
