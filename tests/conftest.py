"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from scaffolder.adapters.mock import MockAdapter
from scaffolder.adapters.registry import AdapterRegistry

APPLICATION_RB = textwrap.dedent("""\
    require_relative "boot"

    require "rails/all"

    module Blog
      class Application < Rails::Application
        config.load_defaults 7.1
      end
    end
""")

GEMFILE = textwrap.dedent("""\
    source "https://rubygems.org"

    gem "rails", "~> 7.1.3"
""")


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A minimal freshly generated Rails skeleton."""
    root = tmp_path / "blog"
    (root / "config").mkdir(parents=True)
    (root / "Gemfile").write_text(GEMFILE)
    (root / "config" / "application.rb").write_text(APPLICATION_RB)
    return root


@pytest.fixture
def empty_project(tmp_path: Path) -> Path:
    """An empty project directory."""
    root = tmp_path / "empty"
    root.mkdir()
    return root


@pytest.fixture
def mocks() -> dict[str, MockAdapter]:
    """Recording doubles for every process adapter."""
    return {name: MockAdapter(adapter_name=name) for name in ("shell", "generator", "git")}


@pytest.fixture
def registry(mocks: dict[str, MockAdapter]) -> AdapterRegistry:
    """Registry wired to the recording doubles."""
    reg = AdapterRegistry()
    for mock in mocks.values():
        reg.register(mock)
    return reg


def _snapshot(root: Path) -> dict[str, bytes]:
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def snapshot():
    """Map every file under a directory to its content."""
    return _snapshot
