"""
Manifest writer — append grouped dependency declarations.

Renders a ``DependencyGroup`` in Gemfile syntax, the same block shape
Rails' ``gem_group`` produces:

    group :development, :test do
      gem 'pry-byebug'
      gem 'web-console', '>= 3.3.0'
    end

Writing is append-only and NOT idempotent: applying the same group
twice declares every package twice.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from scaffolder.core.errors import ManifestWriteError
from scaffolder.core.models.recipe import DependencyGroup, DependencySpec

logger = logging.getLogger(__name__)

_GROUP_RE = re.compile(r"^\s*group\s+(?P<envs>.+?)\s+do\s*$")
_GEM_RE = re.compile(r"""^\s*gem\s+(['"])(?P<name>[^'"]+)\1""")
_END_RE = re.compile(r"^\s*end\s*$")


def _quote(value: str) -> str:
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def render_declaration(spec: DependencySpec) -> str:
    """One ``gem`` line, without indentation."""
    line = f"gem {_quote(spec.name)}"
    if spec.version:
        line += f", {_quote(spec.version)}"
    return line


def render_group(group: DependencyGroup) -> str:
    """Render a group block, preceded by a blank line."""
    envs = ", ".join(f":{env}" for env in group.environments)
    lines = ["", f"group {envs} do"]
    lines.extend(f"  {render_declaration(spec)}" for spec in group.entries)
    lines.append("end")
    return "\n".join(lines) + "\n"


def write_group(group: DependencyGroup, manifest_path: Path) -> int:
    """Append a group block to the manifest.

    Creates the manifest if it does not exist; its directory must.

    Returns:
        Number of declaration lines written.

    Raises:
        ManifestWriteError: If the manifest cannot be written.
    """
    block = render_group(group)
    try:
        if _missing_final_newline(manifest_path):
            block = "\n" + block
        with manifest_path.open("a", encoding="utf-8") as f:
            f.write(block)
    except OSError as e:
        raise ManifestWriteError(manifest_path, e.strerror or str(e)) from e

    logger.debug(
        "Wrote group %s (%d entries) to %s",
        group.name, len(group.entries), manifest_path,
    )
    return len(group.entries)


def _missing_final_newline(path: Path) -> bool:
    if not path.is_file() or path.stat().st_size == 0:
        return False
    with path.open("rb") as f:
        f.seek(-1, 2)
        return f.read(1) != b"\n"


def read_declarations(manifest_path: Path) -> list[tuple[list[str], str]]:
    """Parse ``(environments, package)`` pairs out of a Gemfile.

    Top-level gems get an empty environment list. Only ``group ... do``
    blocks are understood; anything else is ignored.
    """
    if not manifest_path.is_file():
        return []

    declarations: list[tuple[list[str], str]] = []
    current: list[str] = []
    for line in manifest_path.read_text(encoding="utf-8").splitlines():
        group = _GROUP_RE.match(line)
        if group:
            current = [
                env.strip().lstrip(":").strip("'\"")
                for env in group.group("envs").split(",")
            ]
            continue
        if current and _END_RE.match(line):
            current = []
            continue
        gem = _GEM_RE.match(line)
        if gem:
            declarations.append((list(current), gem.group("name")))
    return declarations
