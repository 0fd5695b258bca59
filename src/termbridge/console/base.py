"""Abstract base class for the host command dispatcher.

Structured-command mode hands a normalized command line to whatever
command runner the host application provides and captures its output.
Implementations decide how the host is reached; the gateway only sees
this interface.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from termbridge.domain.models import ExecutionResult, NormalizedCommand

logger = logging.getLogger(__name__)


class ConsoleError(Exception):
    """Raised when the dispatcher itself fails, as opposed to the command."""

    def __init__(self, message: str, dispatcher: str = "") -> None:
        self.dispatcher = dispatcher
        super().__init__(message)


class ConsoleDispatcher(ABC):
    """Runs host commands by name and captures their output."""

    @abstractmethod
    async def call(self, command: NormalizedCommand) -> ExecutionResult:
        """Run a normalized command and return its captured output.

        A non-zero exit code from the command is a result, not an error.

        Raises:
            ConsoleError: If the command could not be dispatched at all.
        """
        ...
