"""
Tests for the configuration patcher — append, replace_block, insert_after.
"""

import textwrap
from pathlib import Path

import pytest

from scaffolder.core.errors import ConfigPatchError
from scaffolder.core.models import ConfigPatch, PatchMode
from scaffolder.core.services.config_patch import apply_patch, block_delimiters

GENERATOR_LINE = "config.generators { |generator| generator.test_framework :rspec }"


class TestAppend:
    def test_creates_file(self, empty_project: Path):
        apply_patch(ConfigPatch(target="settings.rb", content="a = 1"), empty_project)
        assert (empty_project / "settings.rb").read_text() == "a = 1\n"

    def test_appends_line(self, project_dir: Path):
        target = project_dir / "config" / "application.rb"
        before = target.read_text().splitlines()

        apply_patch(ConfigPatch(target="config/application.rb", content=GENERATOR_LINE), project_dir)

        after = target.read_text().splitlines()
        assert after[:-1] == before
        assert after[-1] == GENERATOR_LINE

    def test_adds_missing_newline_first(self, empty_project: Path):
        (empty_project / "a.rb").write_text("x = 1")
        apply_patch(ConfigPatch(target="a.rb", content="y = 2\n"), empty_project)
        assert (empty_project / "a.rb").read_text() == "x = 1\ny = 2\n"

    def test_missing_parent_directory(self, empty_project: Path):
        with pytest.raises(ConfigPatchError) as exc:
            apply_patch(ConfigPatch(target="config/environments/test.rb", content="x"), empty_project)
        assert "directory does not exist" in str(exc.value)
        assert not (empty_project / "config").exists()

    def test_absolute_target(self, empty_project: Path, tmp_path: Path):
        target = tmp_path / "elsewhere.rb"
        apply_patch(ConfigPatch(target=str(target), content="x"), empty_project)
        assert target.read_text() == "x\n"

    def test_target_is_directory(self, empty_project: Path):
        (empty_project / "config").mkdir()
        with pytest.raises(ConfigPatchError):
            apply_patch(ConfigPatch(target="config", content="x"), empty_project)


class TestReplaceBlock:
    def _patch(self, content: str, marker: str | None = "generators") -> ConfigPatch:
        return ConfigPatch(
            target="config/initializers/gens.rb",
            content=content,
            mode=PatchMode.REPLACE_BLOCK,
            marker=marker,
        )

    def test_appends_block_when_absent(self, project_dir: Path):
        (project_dir / "config" / "initializers").mkdir()
        apply_patch(self._patch("one"), project_dir)

        text = (project_dir / "config" / "initializers" / "gens.rb").read_text()
        assert text == "# BEGIN generators\none\n# END generators\n"

    def test_replaces_existing_block(self, project_dir: Path):
        (project_dir / "config" / "initializers").mkdir()
        target = project_dir / "config" / "initializers" / "gens.rb"
        target.write_text(textwrap.dedent("""\
            before
            # BEGIN generators
            old
            lines
            # END generators
            after
        """))

        apply_patch(self._patch("new"), project_dir)

        assert target.read_text() == textwrap.dedent("""\
            before
            # BEGIN generators
            new
            # END generators
            after
        """)

    def test_replacing_twice_keeps_one_block(self, project_dir: Path):
        (project_dir / "config" / "initializers").mkdir()
        apply_patch(self._patch("first"), project_dir)
        apply_patch(self._patch("second"), project_dir)

        text = (project_dir / "config" / "initializers" / "gens.rb").read_text()
        assert text.count("# BEGIN generators") == 1
        assert "second" in text and "first" not in text

    def test_default_marker(self):
        begin, end = block_delimiters(self._patch("x", marker=None).block_marker)
        assert begin == "# BEGIN scaffolder"
        assert end == "# END scaffolder"

    def test_duplicate_marker_is_error(self, project_dir: Path):
        (project_dir / "config" / "initializers").mkdir()
        target = project_dir / "config" / "initializers" / "gens.rb"
        target.write_text("# BEGIN generators\n# END generators\n# BEGIN generators\n# END generators\n")
        with pytest.raises(ConfigPatchError, match="appears 2 times"):
            apply_patch(self._patch("x"), project_dir)

    def test_unterminated_block_is_error(self, project_dir: Path):
        (project_dir / "config" / "initializers").mkdir()
        target = project_dir / "config" / "initializers" / "gens.rb"
        target.write_text("# BEGIN generators\nold\n")
        with pytest.raises(ConfigPatchError, match="no '# END generators' line"):
            apply_patch(self._patch("x"), project_dir)


class TestInsertAfter:
    def _patch(self, anchor: str = "class Application < Rails::Application") -> ConfigPatch:
        return ConfigPatch(
            target="config/application.rb",
            content=GENERATOR_LINE,
            mode=PatchMode.INSERT_AFTER,
            anchor=anchor,
            indent=4,
        )

    def test_inserts_after_anchor(self, project_dir: Path):
        target = project_dir / "config" / "application.rb"
        before = target.read_text().splitlines()

        apply_patch(self._patch(), project_dir)

        lines = target.read_text().splitlines()
        assert len(lines) == len(before) + 1
        anchor_at = next(i for i, line in enumerate(lines) if "Rails::Application" in line)
        assert lines[anchor_at + 1] == "    " + GENERATOR_LINE
        assert lines[anchor_at + 2] == "    config.load_defaults 7.1"

    def test_missing_anchor_appends(self, project_dir: Path, caplog):
        target = project_dir / "config" / "application.rb"

        with caplog.at_level("WARNING"):
            apply_patch(self._patch(anchor="class Nowhere"), project_dir)

        assert target.read_text().splitlines()[-1] == "    " + GENERATOR_LINE
        assert "not found" in caplog.text

    def test_missing_file_is_created(self, empty_project: Path):
        (empty_project / "config").mkdir()
        apply_patch(self._patch(), empty_project)
        assert (empty_project / "config" / "application.rb").read_text() == "    " + GENERATOR_LINE + "\n"


class TestUndecodableTarget:
    @pytest.mark.parametrize("mode, extra", [
        (PatchMode.APPEND, {}),
        (PatchMode.REPLACE_BLOCK, {"marker": "generators"}),
        (PatchMode.INSERT_AFTER, {"anchor": "class Application"}),
    ])
    def test_raises_patch_error(self, empty_project: Path, mode, extra):
        target = empty_project / "app.rb"
        target.write_bytes(b"# caf\xe9\n")

        with pytest.raises(ConfigPatchError, match="not valid UTF-8") as exc:
            apply_patch(ConfigPatch(target="app.rb", content="x", mode=mode, **extra), empty_project)

        assert exc.value.path == str(target)
        assert target.read_bytes() == b"# caf\xe9\n"
