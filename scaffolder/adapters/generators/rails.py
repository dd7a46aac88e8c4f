"""
Generator adapter — invoke a named generator of the host framework.

``generate rspec:install`` becomes ``bin/rails generate rspec:install``
run in the project root. The generator command prefix comes from the
recipe, so other frameworks' generators work the same way.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from scaffolder.adapters.base import ExecutionContext
from scaffolder.adapters.shell.command import ShellCommandAdapter
from scaffolder.core.models.action import Receipt

DEFAULT_GENERATOR_COMMAND = "bin/rails generate"


class GeneratorAdapter(ShellCommandAdapter):
    """Run ``<generator_command> <generator>`` with inherited streams.

    Action params:
        generator (str): Generator name (e.g. 'rspec:install').
        generator_command (str): Command prefix (default: 'bin/rails generate').
    """

    @property
    def name(self) -> str:
        return "generator"

    def is_available(self) -> bool:
        return shutil.which("rails") is not None or shutil.which("bundle") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.action.params.get("generator", "").strip():
            return False, "Missing required param: 'generator'"
        if not Path(context.working_dir).is_dir():
            return False, f"Working directory does not exist: {context.working_dir}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        receipt = self._run(context, self.command_for(context))
        receipt.metadata["generator"] = context.action.params["generator"]
        return receipt

    @staticmethod
    def command_for(context: ExecutionContext) -> str:
        prefix = context.action.params.get("generator_command") or DEFAULT_GENERATOR_COMMAND
        return f"{prefix} {context.action.params.get('generator', '')}"
