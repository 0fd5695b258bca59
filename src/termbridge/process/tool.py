"""External-tool mode: package manager commands with a readable transcript."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Iterable

from termbridge.domain.models import ExecutionResult, ProcessMode
from termbridge.process.locator import ToolLocator
from termbridge.process.runner import ProcessRunner
from termbridge.utils.transcript import LineCallback, Transcript

logger = logging.getLogger(__name__)

HELP_LINES = (
    "Package manager commands",
    "Usage: pip <command> [options]",
    "",
    "Common commands:",
    "  install <package>       Install a package",
    "  install -r <file>       Install from a requirements file",
    "  install -U <package>    Upgrade a package",
    "  uninstall -y <package>  Remove a package",
    "  list                    List installed packages",
    "  show <package>          Show package details",
    "  freeze                  Print installed packages as requirements",
    "  check                   Verify installed packages have compatible dependencies",
    "  --version               Show the package manager version",
)


class PackageTool:
    """Runs the package tool located by a ToolLocator through a ProcessRunner.

    Install-like commands stream; everything else is buffered. Default
    arguments that keep the tool non-interactive are appended to every
    invocation unless already present.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        locator: ToolLocator,
        default_args: Iterable[str] = ("--no-color", "--no-input"),
    ) -> None:
        self._runner = runner
        self._locator = locator
        self._default_args = tuple(default_args)

    async def run(self, command: str, on_line: LineCallback | None = None) -> ExecutionResult:
        command = command.strip()
        transcript = Transcript(on_line)
        if not command:
            transcript.extend(HELP_LINES)
            return ExecutionResult(output=transcript.lines)

        try:
            args = shlex.split(command)
        except ValueError as e:
            transcript.add(f"Cannot parse command: {e}")
            return ExecutionResult(exit_code=1, output=transcript.lines, error=str(e))

        prefix = await self._locator.locate()
        if prefix is None:
            transcript.extend(self._not_found_lines())
            return ExecutionResult(
                exit_code=1, output=transcript.lines, error=f"Tool not found: {self._locator.name}"
            )

        argv = [*prefix, *args, *(arg for arg in self._default_args if arg not in args)]
        spec = self._runner.build_spec(command, argv)

        transcript.add(f"Using: {shlex.join(prefix)}")
        transcript.add(f"Executing: {shlex.join(argv)}")
        transcript.add(f"Working Directory: {spec.cwd}")
        transcript.add("")

        if spec.mode is ProcessMode.STREAMED:
            transcript.add("This may take a while...")
            await self._runner.run(spec, on_line=transcript.add)
            transcript.add("Command completed")
            return ExecutionResult(output=transcript.lines)

        result = await self._runner.run(spec)
        transcript.extend(result.output)
        if result.succeeded:
            transcript.add("Command completed")
        return ExecutionResult(
            exit_code=result.exit_code, output=transcript.lines, error=result.error
        )

    def _not_found_lines(self) -> list[str]:
        name = self._locator.name
        return [
            f"Tool not found: {name}",
            "",
            "To fix this, do one of the following:",
            f"  1. Install {name} for the server's interpreter: python -m ensurepip --upgrade",
            f"  2. Put {name} on the PATH of the server process",
            f"  3. Place {self._locator.archive_path.name} in {self._locator.project_root}",
        ]
