"""
Tests for persistence — audit ledger.
"""

import json
from pathlib import Path

from scaffolder.core.engine.pipeline import apply_recipe
from scaffolder.core.models import DependencyGroup, DependencySpec, Recipe, ShellStep
from scaffolder.core.persistence.audit import AuditEntry, AuditWriter
from scaffolder.core.use_cases.apply import write_audit_entry


class TestAuditWriter:
    """Tests for the append-only audit ledger."""

    def test_write_and_read(self, tmp_path: Path):
        writer = AuditWriter(tmp_path / "audit.ndjson")
        writer.write(AuditEntry(operation_id="op-1", recipe="rails", status="ok"))
        writer.write(AuditEntry(operation_id="op-2", recipe="rails", status="failed", exit_code=7))

        entries = writer.read_all()
        assert [e.operation_id for e in entries] == ["op-1", "op-2"]
        assert entries[1].exit_code == 7

    def test_creates_parent_directory(self, tmp_path: Path):
        path = tmp_path / "logs" / "nested" / "audit.ndjson"
        AuditWriter(path).write(AuditEntry(operation_id="op-1"))
        assert path.is_file()

    def test_one_json_line_per_entry(self, tmp_path: Path):
        path = tmp_path / "audit.ndjson"
        writer = AuditWriter(path)
        writer.write(AuditEntry(operation_id="op-1", context={"recipe_source": "builtin:rails"}))
        writer.write(AuditEntry(operation_id="op-2"))

        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert json.loads(lines[0])["context"] == {"recipe_source": "builtin:rails"}

    def test_read_missing(self, tmp_path: Path):
        assert AuditWriter(tmp_path / "none.ndjson").read_all() == []

    def test_skips_corrupt_lines(self, tmp_path: Path):
        path = tmp_path / "audit.ndjson"
        writer = AuditWriter(path)
        writer.write(AuditEntry(operation_id="op-1"))
        with path.open("a") as f:
            f.write("{not json\n\n")
        writer.write(AuditEntry(operation_id="op-2"))

        assert [e.operation_id for e in writer.read_all()] == ["op-1", "op-2"]

    def test_read_recent(self, tmp_path: Path):
        writer = AuditWriter(tmp_path / "audit.ndjson")
        for i in range(5):
            writer.write(AuditEntry(operation_id=f"op-{i}"))
        assert [e.operation_id for e in writer.read_recent(2)] == ["op-3", "op-4"]

    def test_unwritable_path_is_logged(self, tmp_path: Path, caplog):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        AuditWriter(blocker / "audit.ndjson").write(AuditEntry(operation_id="op-1"))
        assert "Failed to write audit entry" in caplog.text


class TestWriteAuditEntry:
    def test_from_failed_report(self, registry, mocks, empty_project: Path, tmp_path: Path):
        recipe = Recipe(
            name="tiny",
            dependency_groups=[DependencyGroup(name="test", entries=[DependencySpec(name="rspec")])],
            install=ShellStep(command="bundle install"),
        )
        mocks["shell"].set_failure("bundle install", return_code=5)
        report = apply_recipe(recipe, empty_project, registry, operation_id="op-a")

        writer = AuditWriter(tmp_path / "audit.ndjson")
        write_audit_entry(report, writer, source="scaffold.yml")

        (entry,) = writer.read_all()
        assert entry.operation_id == "op-a"
        assert entry.recipe == "tiny"
        assert entry.status == "failed"
        assert entry.exit_code == 5
        assert entry.failed_stage == "installing_packages"
        assert entry.stages == ["validating", "writing_dependencies", "patching_config", "installing_packages"]
        assert entry.lines_written == 1
        assert entry.actions_total == 1
        assert entry.actions_failed == 1
        assert entry.context == {"recipe_source": "scaffold.yml"}
