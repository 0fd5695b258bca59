"""Evaluation backend built on Python's own compile/eval/exec."""

from __future__ import annotations

import builtins
import contextlib
import functools
import importlib
import io
import logging
import os
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from termbridge.domain.models import EvaluationKind
from termbridge.evaluator.base import (
    ASSIGNMENT_PATTERN,
    EvaluationFailure,
    EvaluationOutcome,
    EvaluationSuccess,
    ScriptBackend,
)

if TYPE_CHECKING:
    from termbridge.config.settings import Settings

logger = logging.getLogger(__name__)

FILENAME = "<repl>"


def build_helpers(settings: Settings | None = None) -> dict[str, Callable[..., Any]]:
    """REPL helpers: ``config("section.key")`` and ``env("NAME")``."""
    data = settings.model_dump(mode="json") if settings is not None else {}

    def config(key: str, default: Any = None) -> Any:
        node: Any = data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def env(key: str, default: Any = None) -> Any:
        return os.environ.get(key, default)

    return {"config": config, "env": env}


class PythonBackend(ScriptBackend):
    """Runs REPL code in a fresh namespace per call.

    The namespace starts with the preloaded modules, the helpers and the
    restored bindings. ``print`` and ``sys.stdout`` both point at the
    sink while the code runs.
    """

    def __init__(
        self,
        helpers: Mapping[str, Any] | None = None,
        preload: Iterable[str] = (),
    ) -> None:
        self._helpers = dict(helpers) if helpers is not None else build_helpers()
        self._modules: dict[str, Any] = {}
        for name in preload:
            try:
                importlib.import_module(name)
            except ImportError as e:
                logger.error("Cannot preload module %r: %s", name, e)
                continue
            root = name.split(".")[0]
            self._modules[root] = importlib.import_module(root)

    def evaluate(
        self,
        code: str,
        kind: EvaluationKind,
        bindings: Mapping[str, Any],
        sink: io.StringIO,
    ) -> EvaluationOutcome:
        namespace: dict[str, Any] = {"__builtins__": builtins, "__name__": "__repl__"}
        namespace.update(self._modules)
        namespace.update(self._helpers)
        namespace["print"] = functools.partial(print, file=sink)
        injected = set(namespace)
        namespace.update(bindings)

        try:
            with contextlib.redirect_stdout(sink):
                value = self._run(code, kind, namespace)
        except (Exception, SystemExit) as e:
            logger.debug("Evaluation failed: %s: %s", type(e).__name__, e)
            return EvaluationFailure(category=type(e).__name__, message=str(e))

        new_bindings = {
            name: bound
            for name, bound in namespace.items()
            if name not in injected and not (name.startswith("__") and name.endswith("__"))
        }
        return EvaluationSuccess(value=value, bindings=new_bindings, output=sink.getvalue())

    def _run(self, code: str, kind: EvaluationKind, namespace: dict[str, Any]) -> Any:
        if kind is EvaluationKind.EXPRESSION:
            try:
                compiled = compile(code, FILENAME, "eval")
            except SyntaxError:
                # Augmented assignment, tuple unpacking and the like
                exec(compile(code, FILENAME, "exec"), namespace)
                return None
            return eval(compiled, namespace)

        exec(compile(code, FILENAME, "exec"), namespace)
        if kind is EvaluationKind.ASSIGNMENT:
            match = ASSIGNMENT_PATTERN.match(code)
            if match:
                return namespace.get(match.group(1))
        return None
