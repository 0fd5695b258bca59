"""External process execution for termbridge.

Public API:
    ProcessRunner -- Buffered / streamed child processes
    ToolLocator -- Package tool resolution chain
    PackageTool -- External-tool mode transcripts
"""

from termbridge.process.locator import ToolLocator
from termbridge.process.runner import ProcessRunner, ProcessRunnerError
from termbridge.process.tool import PackageTool

__all__ = ["PackageTool", "ProcessRunner", "ProcessRunnerError", "ToolLocator"]
