"""Host command dispatcher backed by a configured CLI."""

from __future__ import annotations

import logging
import shlex
from collections.abc import Sequence

from termbridge.console.base import ConsoleDispatcher, ConsoleError
from termbridge.domain.models import ExecutionResult, NormalizedCommand, ProcessMode, ProcessSpec
from termbridge.process.runner import ProcessRunner, ProcessRunnerError

logger = logging.getLogger(__name__)


class ProcessConsole(ConsoleDispatcher):
    """Appends the command's tokens to a host CLI argv and runs it buffered.

    With ``command=["python", "manage.py"]``, the command ``check
    --no-interaction`` runs ``python manage.py check --no-interaction``
    in the runner's project root.
    """

    def __init__(self, runner: ProcessRunner, command: Sequence[str] = ()) -> None:
        self._runner = runner
        self._command = list(command)

    @property
    def configured(self) -> bool:
        return bool(self._command)

    async def call(self, command: NormalizedCommand) -> ExecutionResult:
        if not self._command:
            message = "No host console configured (set console.command)"
            return ExecutionResult(exit_code=1, output=[message], error=message)

        try:
            args = shlex.split(command.text)
        except ValueError as e:
            raise ConsoleError(f"Cannot parse command {command.text!r}: {e}", "process") from e

        spec = ProcessSpec(
            command=command.text,
            argv=[*self._command, *args],
            cwd=self._runner.project_root,
            mode=ProcessMode.BUFFERED,
        )
        try:
            return await self._runner.run(spec)
        except ProcessRunnerError as e:
            raise ConsoleError(str(e), "process") from e
