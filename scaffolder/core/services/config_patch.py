"""
Configuration patcher — append, replace or inject lines in a file.

Modes:
    append         Add the content at the end (file created if absent).
    replace_block  Replace the ``# BEGIN <marker>`` … ``# END <marker>``
                   block, or append a new delimited block.
    insert_after   Insert after the first line containing ``anchor``,
                   or append when no line matches.

Parent directories are never created: a patch aimed at a directory
that does not exist is an error, not a new tree.
"""

from __future__ import annotations

import logging
from pathlib import Path

from scaffolder.core.errors import ConfigPatchError
from scaffolder.core.models.recipe import ConfigPatch, PatchMode

logger = logging.getLogger(__name__)


def resolve_target(patch: ConfigPatch, project_root: Path) -> Path:
    """Absolute path of the patched file."""
    target = Path(patch.target)
    if not target.is_absolute():
        target = project_root / target
    return target


def block_delimiters(marker: str) -> tuple[str, str]:
    return f"# BEGIN {marker}", f"# END {marker}"


def apply_patch(patch: ConfigPatch, project_root: Path) -> Path:
    """Apply one patch.

    Returns:
        The patched file path.

    Raises:
        ConfigPatchError: Missing parent directory, permission problem,
            undecodable file, or an ambiguous replace_block marker.
    """
    target = resolve_target(patch, project_root)
    if not target.parent.is_dir():
        raise ConfigPatchError(target, f"directory does not exist: {target.parent}")

    try:
        if patch.mode is PatchMode.APPEND:
            _append(target, _with_newline(patch.content))
        elif patch.mode is PatchMode.REPLACE_BLOCK:
            _replace_block(target, patch)
        elif patch.mode is PatchMode.INSERT_AFTER:
            _insert_after(target, patch)
        else:
            raise ConfigPatchError(target, f"unknown patch mode: {patch.mode}")
    except OSError as e:
        raise ConfigPatchError(target, e.strerror or str(e)) from e
    except UnicodeError as e:
        raise ConfigPatchError(target, "not valid UTF-8") from e

    logger.debug("Patched %s (%s)", target, patch.mode.value)
    return target


# ── Modes ───────────────────────────────────────────────────────────


def _append(target: Path, text: str) -> None:
    if target.is_file():
        existing = target.read_text(encoding="utf-8")
        if existing and not existing.endswith("\n"):
            text = "\n" + text
    with target.open("a", encoding="utf-8") as f:
        f.write(text)


def _replace_block(target: Path, patch: ConfigPatch) -> None:
    begin, end = block_delimiters(patch.block_marker)
    block = [begin, *_with_newline(patch.content).splitlines(), end]

    if not target.is_file():
        _append(target, "\n".join(block) + "\n")
        return

    lines = target.read_text(encoding="utf-8").splitlines()
    starts = [i for i, line in enumerate(lines) if line.strip() == begin]
    if len(starts) > 1:
        raise ConfigPatchError(target, f"marker '{patch.block_marker}' appears {len(starts)} times")

    if starts:
        start = starts[0]
        for stop in range(start + 1, len(lines)):
            if lines[stop].strip() == end:
                lines[start:stop + 1] = block
                target.write_text("\n".join(lines) + "\n", encoding="utf-8")
                return
        raise ConfigPatchError(target, f"block '{patch.block_marker}' has no '{end}' line")

    _append(target, "\n".join(block) + "\n")


def _insert_after(target: Path, patch: ConfigPatch) -> None:
    anchor = patch.anchor or ""
    pad = " " * patch.indent
    inserted = [pad + line if line else line for line in patch.content.splitlines()]

    if target.is_file():
        lines = target.read_text(encoding="utf-8").splitlines()
        for i, line in enumerate(lines):
            if anchor in line:
                lines[i + 1:i + 1] = inserted
                target.write_text("\n".join(lines) + "\n", encoding="utf-8")
                return

    logger.warning("Anchor %r not found in %s, appending instead", anchor, target)
    _append(target, "\n".join(inserted) + "\n")


def _with_newline(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"
