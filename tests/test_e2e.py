"""
End-to-end tests — the default Rails recipe applied to a fresh skeleton.

Files and git are real. Bundler and the Rails generator are replaced by
recording doubles so the tests need neither Ruby nor network access.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

from scaffolder.adapters.mock import MockAdapter
from scaffolder.adapters.registry import AdapterRegistry
from scaffolder.adapters.vcs.git import GitAdapter
from scaffolder.core.engine.pipeline import Stage
from scaffolder.core.persistence.audit import AuditWriter
from scaffolder.core.services.manifest import read_declarations
from scaffolder.core.use_cases.apply import run_apply

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


@pytest.fixture(autouse=True)
def _git_identity(monkeypatch):
    for var in ("AUTHOR", "COMMITTER"):
        monkeypatch.setenv(f"GIT_{var}_NAME", "Test User")
        monkeypatch.setenv(f"GIT_{var}_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CONFIG_GLOBAL", "/dev/null")


@pytest.fixture
def e2e_registry() -> AdapterRegistry:
    registry = AdapterRegistry()
    registry.register(MockAdapter(adapter_name="shell"))
    registry.register(MockAdapter(adapter_name="generator"))
    registry.register(GitAdapter())
    return registry


def _git(root: Path, *args: str) -> str:
    return subprocess.run(
        ["git", *args], cwd=root, capture_output=True, text=True, check=True,
    ).stdout


class TestRailsBootstrap:
    def test_full_run(self, project_dir: Path, e2e_registry: AdapterRegistry, tmp_path: Path):
        before = read_declarations(project_dir / "Gemfile")
        app_lines = (project_dir / "config" / "application.rb").read_text().splitlines()
        ledger = tmp_path / "ledger" / "audit.ndjson"

        result = run_apply(project_dir, builtin="rails", registry=e2e_registry, audit_path=ledger)

        assert result.exit_code == 0, result.error
        assert result.report.stages[-1] is Stage.DONE

        declarations = read_declarations(project_dir / "Gemfile")
        assert declarations[:len(before)] == before
        added = declarations[len(before):]
        assert len(added) == 12
        assert added[0] == (["development", "test"], "pry-byebug")
        assert added[-1] == (["test"], "shoulda-matchers")

        new_app_lines = (project_dir / "config" / "application.rb").read_text().splitlines()
        assert len(new_app_lines) == len(app_lines) + 1

        assert e2e_registry.get("shell").executed == ["bundle install"]
        assert e2e_registry.get("generator").executed == ["generate rspec:install"]

        log = _git(project_dir, "log", "--format=%s").splitlines()
        assert log == ["Initial Rails application setup"]
        committed = _git(project_dir, "show", "--name-only", "--format=", "HEAD").split()
        assert {"Gemfile", "config/application.rb"} <= set(committed)
        assert _git(project_dir, "status", "--porcelain") == ""

        (entry,) = AuditWriter(ledger).read_all()
        assert entry.status == "ok"
        assert entry.actions_total == 5

    def test_install_failure_leaves_no_repository(self, project_dir: Path, e2e_registry: AdapterRegistry):
        e2e_registry.get("shell").set_failure("bundle install", error="Could not reach rubygems.org", return_code=17)

        result = run_apply(project_dir, builtin="rails", registry=e2e_registry)

        assert result.exit_code == 17
        assert result.report.failed_stage is Stage.INSTALLING_PACKAGES
        assert not (project_dir / ".git").exists()
        # completed stages are kept for inspection
        assert len(read_declarations(project_dir / "Gemfile")) == 13

    def test_generator_failure_skips_commit(self, project_dir: Path, e2e_registry: AdapterRegistry):
        e2e_registry.get("generator").set_failure("generate rspec:install", return_code=2)

        result = run_apply(project_dir, builtin="rails", registry=e2e_registry)

        assert result.exit_code == 2
        assert result.report.failed_stage is Stage.RUNNING_HOOKS
        assert not (project_dir / ".git").exists()
