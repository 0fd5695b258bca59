"""Execution gateway: validate, route, and wrap results in envelopes.

A request names a method and carries parameter strings. The method
selects the mode:

    python   -> persisted REPL (Evaluator)
    pip      -> external package tool (PackageTool)
    console  -> host command dispatcher with the params as the command
    other    -> host command dispatcher with ``method params...``

Nothing raised below this layer reaches a remote caller: ``handle``
turns every failure into an envelope. Evaluation errors are part of
a REPL transcript and come back as a result.
"""

from __future__ import annotations

import logging
import shlex
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from termbridge.console.base import ConsoleDispatcher
from termbridge.console.process_console import ProcessConsole
from termbridge.domain.models import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    ExecutionResult,
    NormalizedCommand,
    RpcRequest,
    RpcResponse,
)
from termbridge.evaluator.evaluator import Evaluator
from termbridge.evaluator.python import PythonBackend, build_helpers
from termbridge.normalizer.command import CommandNormalizer
from termbridge.normalizer.policy import CommandPolicy, CommandRejected
from termbridge.process.locator import ToolLocator
from termbridge.process.runner import ProcessRunner
from termbridge.process.tool import PackageTool
from termbridge.store.base import VariableStore, session_key
from termbridge.store.file import FileVariableStore
from termbridge.store.memory import MemoryVariableStore
from termbridge.utils.transcript import LineCallback

if TYPE_CHECKING:
    from termbridge.config.settings import Settings

logger = logging.getLogger(__name__)


class Gateway:
    """Single entry point for every remote invocation."""

    def __init__(
        self,
        normalizer: CommandNormalizer,
        policy: CommandPolicy,
        evaluator: Evaluator,
        tool: PackageTool,
        console: ConsoleDispatcher,
        session_window_seconds: int = 300,
        clock: Callable[[], float] = time.time,
        repl_command: str = "python",
        tool_command: str = "pip",
        console_command: str = "console",
    ) -> None:
        self._normalizer = normalizer
        self._policy = policy
        self._evaluator = evaluator
        self._tool = tool
        self._console = console
        self._session_window = session_window_seconds
        self._clock = clock
        self._repl_command = repl_command
        self._tool_command = tool_command
        self._console_command = console_command

    @property
    def evaluator(self) -> Evaluator:
        return self._evaluator

    def validate(self, method: str, params: Sequence[str] = ()) -> NormalizedCommand | None:
        """Check a request without executing anything.

        Returns the normalized command for structured-command mode and
        None for the REPL and package tool modes.

        Raises:
            CommandRejected: If the method or command is not allowed.
        """
        method = method.strip()
        self._policy.check(method)
        if method in (self._repl_command, self._tool_command):
            return None
        command = self._normalizer.normalize(self._command_line(method, params))
        if command.verb != method:
            self._policy.check(command.verb)
        self._normalizer.validate(command)
        return command

    async def call(
        self,
        method: str,
        params: Sequence[str] = (),
        identity: str | None = None,
        on_line: LineCallback | None = None,
    ) -> ExecutionResult:
        """Run one request and return its result.

        Every transcript line is also passed to ``on_line`` as soon as
        it is available.

        Raises:
            CommandRejected: If validation fails. Nothing has run.
        """
        method = method.strip()
        command = self.validate(method, params)

        if command is not None:
            result = await self._console.call(command)
        elif method == self._repl_command:
            code = self._normalizer.normalize_code(" ".join(params))
            session = session_key(identity, self._clock(), self._session_window)
            result = self._evaluator.evaluate(code, session)
        else:
            return await self._tool.run(shlex.join(params), on_line)

        _forward(result, on_line)
        return result

    async def handle(self, request: RpcRequest, identity: str | None = None) -> RpcResponse:
        """Run a request and wrap the outcome in a JSON-RPC envelope. Never raises."""
        try:
            result = await self.call(request.method, request.params, identity)
        except CommandRejected as e:
            return RpcResponse.failure(request, INVALID_REQUEST, "Invalid Request", str(e))
        except Exception as e:
            logger.exception("Request %r failed", request.method)
            return RpcResponse.failure(request, INTERNAL_ERROR, "Internal Error", str(e))

        # A failed evaluation is still a completed REPL request
        if not result.succeeded and request.method.strip() != self._repl_command:
            return RpcResponse.failure(
                request, INVALID_REQUEST, "Invalid Request", result.transcript
            )
        return RpcResponse.success(request, result.transcript)

    def _command_line(self, method: str, params: Sequence[str]) -> str:
        if method == self._console_command:
            return " ".join(params)
        if not method:
            return ""
        return shlex.join([method, *params])


def _forward(result: ExecutionResult, on_line: LineCallback | None) -> None:
    if on_line is not None:
        for line in result.output:
            on_line(line)


def build_store(settings: Settings, clock: Callable[[], float] = time.time) -> VariableStore:
    repl = settings.repl
    if repl.store == "file":
        return FileVariableStore(Path(repl.store_path), ttl_minutes=repl.ttl_minutes, clock=clock)
    return MemoryVariableStore(ttl_minutes=repl.ttl_minutes, clock=clock)


def build_gateway(settings: Settings, clock: Callable[[], float] = time.time) -> Gateway:
    """Wire a Gateway and its components from settings."""
    tool_config = settings.tool
    runner = ProcessRunner(
        project_root=tool_config.project_root,
        long_running=tool_config.long_running,
    )
    console_runner = ProcessRunner(
        project_root=tool_config.project_root,
        timeout=settings.console.timeout,
    )
    locator = ToolLocator(
        project_root=tool_config.project_root,
        name=tool_config.name,
        archive=tool_config.archive,
        download_url=tool_config.download_url,
        common_paths=tool_config.common_paths,
    )
    backend = PythonBackend(helpers=build_helpers(settings), preload=settings.repl.preload)
    return Gateway(
        normalizer=CommandNormalizer.from_config(settings.normalizer),
        policy=CommandPolicy(settings.policy.allowed_patterns, settings.policy.blocked_patterns),
        evaluator=Evaluator(build_store(settings, clock), backend),
        tool=PackageTool(runner, locator, tool_config.default_args),
        console=ProcessConsole(console_runner, settings.console.command),
        session_window_seconds=settings.repl.session_window_seconds,
        clock=clock,
        repl_command=settings.repl.command,
        tool_command=tool_config.command_name,
        console_command=settings.console.command_name,
    )
