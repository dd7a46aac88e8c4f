"""
Recipe model — the declarative description of a bootstrap.

A recipe is pure data: dependency groups for the manifest, patches for
configuration files, one install command, and an ordered list of
after-create hooks. The engine reads it and never mutates it.

Static rules live in ``Recipe.problems()`` rather than in field
constraints, so an invalid recipe can still be loaded, shown and
rejected as a whole with every problem listed.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from scaffolder.core.errors import InvalidRecipe

DEFAULT_BLOCK_MARKER = "scaffolder"


class DependencySpec(BaseModel):
    """One package declaration, optionally version-constrained."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None   # e.g. ">= 3.3.0", "~> 3.1"

    def __str__(self) -> str:
        return f"{self.name} {self.version}" if self.version else self.name


class DependencyGroup(BaseModel):
    """Dependencies scoped to one or more environments.

    ``name`` is a single environment (``"test"``) or a comma-separated
    set (``"development,test"``).
    """

    model_config = ConfigDict(frozen=True)

    name: str
    entries: tuple[DependencySpec, ...] = ()

    @property
    def environments(self) -> list[str]:
        return [env.strip() for env in self.name.split(",") if env.strip()]


class PatchMode(str, enum.Enum):
    APPEND = "append"
    REPLACE_BLOCK = "replace_block"
    INSERT_AFTER = "insert_after"


class ConfigPatch(BaseModel):
    """A change to one configuration file, relative to the project root."""

    model_config = ConfigDict(frozen=True)

    target: str
    content: str
    mode: PatchMode = PatchMode.APPEND
    marker: str | None = None    # replace_block delimiter name
    anchor: str | None = None    # insert_after: substring of the anchor line
    indent: int = 0              # insert_after: spaces before each line

    @property
    def block_marker(self) -> str:
        return self.marker or DEFAULT_BLOCK_MARKER


class ShellStep(BaseModel):
    """An external command run in the project root."""

    model_config = ConfigDict(frozen=True)

    command: str
    shell: bool = False
    timeout: int | None = None


# ── Hook actions ───────────────────────────────────────────────────


class RunGenerator(BaseModel):
    """Invoke a named generator of the host framework."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["generate"] = "generate"
    name: str

    @property
    def label(self) -> str:
        return f"generate {self.name}"


class VcsInit(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["git_init"] = "git_init"

    @property
    def label(self) -> str:
        return "git init"


class VcsAddAll(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["git_add_all"] = "git_add_all"

    @property
    def label(self) -> str:
        return "git add ."


class VcsCommit(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["git_commit"] = "git_commit"
    message: str

    @property
    def label(self) -> str:
        return f"git commit -m {self.message!r}"


HookAction = Annotated[
    Union[RunGenerator, VcsInit, VcsAddAll, VcsCommit],
    Field(discriminator="kind"),
]


# ── Recipe ─────────────────────────────────────────────────────────


class Recipe(BaseModel):
    """The whole bootstrap, applied once by the pipeline."""

    model_config = ConfigDict(frozen=True)

    name: str = "recipe"
    description: str = ""

    manifest: str = "Gemfile"
    dependency_groups: tuple[DependencyGroup, ...] = ()
    config_patches: tuple[ConfigPatch, ...] = ()
    install: ShellStep | None = None

    generator_command: str = "bin/rails generate"
    after_create: tuple[HookAction, ...] = ()

    @property
    def dependency_count(self) -> int:
        return sum(len(g.entries) for g in self.dependency_groups)

    def problems(self) -> list[str]:
        """Every static rule violation, in declaration order."""
        found: list[str] = []

        if not self.manifest.strip():
            found.append("manifest path is empty")

        for gi, group in enumerate(self.dependency_groups):
            label = f"dependency_groups[{gi}]"
            if not group.environments:
                found.append(f"{label}: group name is empty")
            if not group.entries:
                found.append(f"{label} ({group.name!r}): group has no entries")
            for ei, spec in enumerate(group.entries):
                if not spec.name.strip():
                    found.append(f"{label}.entries[{ei}]: package name is empty")

        for pi, patch in enumerate(self.config_patches):
            label = f"config_patches[{pi}]"
            if not patch.target.strip():
                found.append(f"{label}: target file is empty")
            if patch.mode is PatchMode.REPLACE_BLOCK and not patch.block_marker.strip():
                found.append(f"{label}: replace_block needs a marker")
            if patch.mode is PatchMode.INSERT_AFTER and not (patch.anchor or "").strip():
                found.append(f"{label}: insert_after needs an anchor")
            if patch.indent < 0:
                found.append(f"{label}: indent must not be negative")

        if self.install is not None and not self.install.command.strip():
            found.append("install: command is empty")

        for hi, hook in enumerate(self.after_create):
            label = f"after_create[{hi}]"
            if isinstance(hook, RunGenerator):
                if not hook.name.strip():
                    found.append(f"{label}: generator name is empty")
                if not self.generator_command.strip():
                    found.append(f"{label}: generator_command is empty")
            elif isinstance(hook, VcsCommit) and not hook.message.strip():
                found.append(f"{label}: commit message is empty")

        return found

    @property
    def is_valid(self) -> bool:
        return not self.problems()


def validate_recipe(recipe: Recipe, source: str = "") -> Recipe:
    """Raise ``InvalidRecipe`` listing every problem, else return the recipe."""
    problems = recipe.problems()
    if problems:
        raise InvalidRecipe(problems, source=source or recipe.name)
    return recipe
