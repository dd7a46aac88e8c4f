"""
Domain models — Pydantic types for recipes and their execution.

All models are re-exported here for convenient access:

    from scaffolder.core.models import Recipe, DependencyGroup, Action, Receipt
"""

from scaffolder.core.models.action import Action, Receipt
from scaffolder.core.models.recipe import (
    ConfigPatch,
    DependencyGroup,
    DependencySpec,
    HookAction,
    PatchMode,
    Recipe,
    RunGenerator,
    ShellStep,
    VcsAddAll,
    VcsCommit,
    VcsInit,
    validate_recipe,
)

__all__ = [
    # action.py
    "Action",
    # recipe.py
    "ConfigPatch",
    "DependencyGroup",
    "DependencySpec",
    "HookAction",
    "PatchMode",
    "Receipt",
    "Recipe",
    "RunGenerator",
    "ShellStep",
    "VcsAddAll",
    "VcsCommit",
    "VcsInit",
    "validate_recipe",
]
