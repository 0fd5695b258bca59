"""Host command dispatch for structured-command mode.

Public API:
    ConsoleDispatcher -- Abstract base class
    ProcessConsole -- Dispatcher backed by a configured host CLI
"""

from termbridge.console.base import ConsoleDispatcher, ConsoleError
from termbridge.console.process_console import ProcessConsole

__all__ = ["ConsoleDispatcher", "ConsoleError", "ProcessConsole"]
