"""Adapters — bindings for the external tools a recipe runs.

Public re-exports for convenient access.
"""

from scaffolder.adapters.base import Adapter, ExecutionContext
from scaffolder.adapters.mock import MockAdapter
from scaffolder.adapters.registry import AdapterRegistry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]


def default_registry(mock_mode: bool = False) -> AdapterRegistry:
    """Registry with the shell, generator and git adapters registered."""
    from scaffolder.adapters.generators.rails import GeneratorAdapter
    from scaffolder.adapters.shell.command import ShellCommandAdapter
    from scaffolder.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode)
    registry.register(ShellCommandAdapter())
    registry.register(GeneratorAdapter())
    registry.register(GitAdapter())
    return registry
