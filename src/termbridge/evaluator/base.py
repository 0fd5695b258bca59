"""Abstract base class for dynamic evaluation backends.

The evaluator builds context, captures output and persists variables;
the backend is the one piece that actually runs code. Backends never
raise for errors in user code. They return a tagged outcome instead.
"""

from __future__ import annotations

import io
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Literal, Union

from pydantic import BaseModel, Field

from termbridge.domain.models import EvaluationKind

# `x = 42` but not `x == 42`
ASSIGNMENT_PATTERN = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=(?!=)")


class EvaluationSuccess(BaseModel):
    status: Literal["success"] = "success"
    value: Any = Field(default=None, description="Return value of the code")
    bindings: dict[str, Any] = Field(
        default_factory=dict, description="Names bound by the code, bookkeeping excluded"
    )
    output: str = Field(default="", description="Everything written to the sink")


class EvaluationFailure(BaseModel):
    status: Literal["failure"] = "failure"
    category: str = Field(description="Exception class name")
    message: str


EvaluationOutcome = Union[EvaluationSuccess, EvaluationFailure]


class ScriptBackend(ABC):
    """Runs code against a set of bindings.

    Example usage::

        backend = PythonBackend()
        sink = io.StringIO()
        outcome = backend.evaluate("x = 6 * 7", EvaluationKind.ASSIGNMENT, {}, sink)
        outcome.value  # 42
    """

    @abstractmethod
    def evaluate(
        self,
        code: str,
        kind: EvaluationKind,
        bindings: Mapping[str, Any],
        sink: io.StringIO,
    ) -> EvaluationOutcome:
        """Evaluate code with prior bindings in scope.

        Args:
            code: Trimmed source text.
            kind: How the code was classified.
            bindings: Variables restored from the session.
            sink: Receives everything the code prints.

        Returns:
            EvaluationSuccess with the value and new bindings, or
            EvaluationFailure with the error category and message.
        """
        ...
