"""Persisted-REPL evaluation for termbridge.

Public API:
    Evaluator -- Session-aware REPL front end
    ScriptBackend -- Abstract base class for evaluation backends
    PythonBackend -- compile/eval/exec backend
    render_result -- Result-line rendering
"""

from termbridge.evaluator.base import (
    EvaluationFailure,
    EvaluationOutcome,
    EvaluationSuccess,
    ScriptBackend,
)
from termbridge.evaluator.evaluator import Evaluator, classify
from termbridge.evaluator.python import PythonBackend, build_helpers
from termbridge.evaluator.render import render_result

__all__ = [
    "EvaluationFailure",
    "EvaluationOutcome",
    "EvaluationSuccess",
    "Evaluator",
    "PythonBackend",
    "ScriptBackend",
    "build_helpers",
    "classify",
    "render_result",
]
