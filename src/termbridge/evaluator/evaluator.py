"""Persisted-REPL evaluator.

Each call is stateless: the session's stored variables are decoded
back into bindings, the code runs through a ScriptBackend, and any
names an assignment binds are merged back into the VariableStore. The
result is a transcript that reads like a REPL session::

    >>> x = [1, 2, 3]
    => [
        1,
        2,
        3
    ]
"""

from __future__ import annotations

import io
import logging
import re
from typing import Any

from termbridge.domain.models import EvaluationKind, ExecutionResult, SessionKey
from termbridge.evaluator.base import ASSIGNMENT_PATTERN, EvaluationFailure, ScriptBackend
from termbridge.evaluator.python import PythonBackend
from termbridge.evaluator.render import render_result
from termbridge.store.base import VariableStore
from termbridge.store.records import decode_value
from termbridge.utils.transcript import Transcript

logger = logging.getLogger(__name__)

STATEMENT_KEYWORDS = (
    "if", "for", "while", "try", "with", "def", "class", "async", "import",
    "from", "del", "assert", "raise", "pass", "global", "nonlocal", "print",
)
_STATEMENT_PATTERN = re.compile(rf"^({'|'.join(STATEMENT_KEYWORDS)})\b")
_RETURN_PREFIX = "return "

EXIT_COMMANDS = ("exit", "quit")
CLEAR_COMMANDS = ("clear", "reset")
VARS_COMMANDS = ("vars", "variables")


def classify(code: str) -> EvaluationKind:
    """Decide how code is run: assignment, statement, or expression."""
    if ASSIGNMENT_PATTERN.match(code):
        return EvaluationKind.ASSIGNMENT
    if _STATEMENT_PATTERN.match(code.lstrip()):
        return EvaluationKind.STATEMENT
    return EvaluationKind.EXPRESSION


class Evaluator:
    """Runs REPL code against a session's persisted variables."""

    def __init__(self, store: VariableStore, backend: ScriptBackend | None = None) -> None:
        self._store = store
        self._backend = backend or PythonBackend()

    @property
    def store(self) -> VariableStore:
        return self._store

    def evaluate(self, code: str, session: SessionKey) -> ExecutionResult:
        code = code.strip()
        special = self._special_command(code, session)
        if special is not None:
            return special

        if code.endswith(";"):
            code = code[:-1].rstrip()
        transcript = Transcript()
        transcript.add(f">>> {code}")

        if code.startswith(_RETURN_PREFIX):
            code = code[len(_RETURN_PREFIX):].lstrip()
        kind = classify(code)

        bindings = self._restore(session)
        outcome = self._backend.evaluate(code, kind, bindings, io.StringIO())

        if isinstance(outcome, EvaluationFailure):
            error = f"{outcome.category}: {outcome.message}"
            transcript.add(error)
            return ExecutionResult(exit_code=1, output=transcript.lines, error=error)

        if kind is EvaluationKind.ASSIGNMENT:
            self._store.merge(session, outcome.bindings)

        transcript.extend(outcome.output.splitlines())
        transcript.add(f"=> {render_result(outcome.value)}")
        return ExecutionResult(output=transcript.lines, value=outcome.value)

    def _restore(self, session: SessionKey) -> dict[str, Any]:
        bindings: dict[str, Any] = {}
        for name, record in self._store.get(session).items():
            try:
                bindings[name] = decode_value(record.payload)
            except Exception as e:
                logger.warning("Cannot restore variable %r: %s", name, e)
        return bindings

    # ------------------------------------------------------------------
    # Special commands
    # ------------------------------------------------------------------

    def _special_command(self, code: str, session: SessionKey) -> ExecutionResult | None:
        command = code.lower()
        if not command:
            return ExecutionResult(output=self.help_lines())
        if command in EXIT_COMMANDS:
            self._store.clear(session)
            return ExecutionResult(output=["Goodbye! Variables cleared."])
        if command in CLEAR_COMMANDS:
            self._store.clear(session)
            return ExecutionResult(output=["Variables cleared!"])
        if command in VARS_COMMANDS:
            return ExecutionResult(output=self._vars_lines(session))
        return None

    def _vars_lines(self, session: SessionKey) -> list[str]:
        records = self._store.get(session)
        if not records:
            return ["No variables stored yet."]
        lines = ["Stored Variables:"]
        for name, record in sorted(records.items()):
            lines.append(f"  {name} ({record.type}) = {record.display}")
        return lines

    def help_lines(self) -> list[str]:
        return [
            "Python REPL with persistent variables",
            f"Variables you assign are kept for {self._store.ttl_minutes} minutes.",
            "",
            "Commands:",
            "  vars      List stored variables",
            "  clear     Clear stored variables",
            "  exit      Clear variables and end the session",
            "",
            "Examples:",
            "  x = 42",
            "  x * 2",
            '  config("endpoint.port")',
            '  env("HOME")',
        ]
