"""Allow/deny policy for gateway method names.

The endpoint accepts a method name plus parameters. Before anything is
executed the method is matched against anchored regular expressions:
the allow-list is consulted first, then the deny-list, and anything
matching neither is allowed.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from termbridge.normalizer.rules import ENDPOINT_ALLOWED_PATTERNS, ENDPOINT_BLOCKED_PATTERNS

logger = logging.getLogger(__name__)


class CommandRejected(Exception):
    """Raised when a command or method fails validation.

    Nothing has been executed when this is raised.
    """

    def __init__(self, message: str, verb: str = "", reason: str = "") -> None:
        self.verb = verb
        self.reason = reason
        super().__init__(message)


class CommandPolicy:
    """Regex allow/deny policy keyed on the gateway method name."""

    def __init__(
        self,
        allowed_patterns: Iterable[str] = ENDPOINT_ALLOWED_PATTERNS,
        blocked_patterns: Iterable[str] = ENDPOINT_BLOCKED_PATTERNS,
    ) -> None:
        self._allowed = [re.compile(p) for p in allowed_patterns]
        self._blocked = [re.compile(p) for p in blocked_patterns]

    def is_allowed(self, method: str) -> bool:
        method = method.strip()
        if any(p.search(method) for p in self._allowed):
            return True
        if any(p.search(method) for p in self._blocked):
            return False
        return True

    def check(self, method: str) -> None:
        """Raise CommandRejected if the method may not be called remotely."""
        if not self.is_allowed(method):
            logger.info("Rejected endpoint method %r", method)
            raise CommandRejected(
                f"Command '{method}' is not allowed",
                verb=method,
                reason="blocked by endpoint policy",
            )
