"""External process execution, buffered or streamed.

Short commands are run to completion and their combined output is
returned at once. Long-running commands (package installs and the
like) have stdout and stderr read concurrently and forwarded line by
line while the child is still running.
"""

from __future__ import annotations

import asyncio
import logging
import shlex
from collections.abc import AsyncIterator, Iterable, Sequence
from pathlib import Path

from termbridge.domain.models import ExecutionResult, ProcessMode, ProcessSpec
from termbridge.utils.transcript import LineCallback, Transcript

logger = logging.getLogger(__name__)

# Verb substrings that mark a command as long-running
LONG_RUNNING_VERBS: tuple[str, ...] = (
    "install",
    "update",
    "require",
    "remove",
    "create-project",
    "dump-autoload",
    "self-update",
    "global require",
    "global update",
)

NO_OUTPUT = "Command executed but produced no output."
STDERR_PREFIX = "[stderr] "
_READ_CHUNK = 64 * 1024


class ProcessRunnerError(Exception):
    """Raised when a child process cannot be started or times out."""

    def __init__(self, message: str, argv: Sequence[str] = ()) -> None:
        self.argv = list(argv)
        super().__init__(message)


class ProcessRunner:
    """Spawns child processes in a fixed project root.

    The child is started with ``cwd`` set to the project root; the
    server's own working directory is never touched. A child still
    running when its awaiting task is cancelled is killed.
    """

    def __init__(
        self,
        project_root: Path | str = ".",
        long_running: Iterable[str] = LONG_RUNNING_VERBS,
        timeout: float | None = None,
    ) -> None:
        self._project_root = Path(project_root).resolve()
        self._long_running = tuple(long_running)
        self._timeout = timeout

    @property
    def project_root(self) -> Path:
        return self._project_root

    def classify(self, command: str) -> ProcessMode:
        if any(verb in command for verb in self._long_running):
            return ProcessMode.STREAMED
        return ProcessMode.BUFFERED

    def build_spec(self, command: str, argv: Sequence[str]) -> ProcessSpec:
        return ProcessSpec(
            command=command,
            argv=list(argv),
            cwd=self._project_root,
            mode=self.classify(command),
        )

    async def run(self, spec: ProcessSpec, on_line: LineCallback | None = None) -> ExecutionResult:
        logger.info("Running %s (%s) in %s", shlex.join(spec.argv), spec.mode.value, spec.cwd)
        if spec.mode is ProcessMode.STREAMED:
            return await self._run_streamed(spec, on_line)
        return await self._run_buffered(spec)

    async def _spawn(self, spec: ProcessSpec, stderr: int) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *spec.argv,
                cwd=str(spec.cwd),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=stderr,
            )
        except OSError as e:
            raise ProcessRunnerError(
                f"Cannot start {spec.argv[0]}: {e}", argv=spec.argv
            ) from e

    async def _run_buffered(self, spec: ProcessSpec) -> ExecutionResult:
        process = await self._spawn(spec, stderr=asyncio.subprocess.STDOUT)
        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise ProcessRunnerError(
                f"Command timed out after {self._timeout} seconds", argv=spec.argv
            ) from e
        finally:
            _kill_if_running(process)

        output = stdout.decode("utf-8", errors="replace").splitlines() or [NO_OUTPUT]
        exit_code = process.returncode or 0
        logger.debug("%s exited with %d", spec.argv[0], exit_code)
        if exit_code != 0:
            output.append(f"Command exited with code: {exit_code}")
            return ExecutionResult(
                exit_code=exit_code, output=output, error=f"exited with code {exit_code}"
            )
        return ExecutionResult(output=output)

    async def _run_streamed(
        self, spec: ProcessSpec, on_line: LineCallback | None
    ) -> ExecutionResult:
        process = await self._spawn(spec, stderr=asyncio.subprocess.PIPE)
        queue: asyncio.Queue[str | None] = asyncio.Queue()

        async def pump(stream: asyncio.StreamReader, prefix: str) -> None:
            try:
                async for line in _read_lines(stream):
                    await queue.put(prefix + line)
            finally:
                await queue.put(None)

        readers = [
            asyncio.create_task(pump(process.stdout, "")),
            asyncio.create_task(pump(process.stderr, STDERR_PREFIX)),
        ]
        transcript = Transcript(on_line)
        try:
            open_streams = len(readers)
            while open_streams:
                line = await queue.get()
                if line is None:
                    open_streams -= 1
                    continue
                transcript.add(line)
            try:
                await asyncio.gather(*readers)
            except OSError as e:
                raise ProcessRunnerError(
                    f"Cannot read output of {spec.argv[0]}: {e}", argv=spec.argv
                ) from e
            exit_code = await process.wait()
        finally:
            for reader in readers:
                reader.cancel()
            _kill_if_running(process)

        # Output already reached the caller; the exit code is informational
        logger.info("%s finished with exit code %d", spec.argv[0], exit_code)
        return ExecutionResult(output=transcript.lines)


async def _read_lines(stream: asyncio.StreamReader) -> AsyncIterator[str]:
    """Yield decoded lines of any length; the reader's line limit does not apply."""
    pending = bytearray()
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        pending.extend(chunk)
        *complete, rest = pending.split(b"\n")
        for raw in complete:
            yield _decode(raw)
        pending = bytearray(rest)
    if pending:
        yield _decode(pending)


def _decode(raw: bytes | bytearray) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r")


def _kill_if_running(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        logger.warning("Killing unfinished process %d", process.pid)
        try:
            process.kill()
        except ProcessLookupError:
            pass
