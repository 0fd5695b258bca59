"""Tests for the persisted-REPL Evaluator."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from termbridge.config.settings import Settings
from termbridge.domain.models import EvaluationKind, SessionKey
from termbridge.evaluator.evaluator import Evaluator, classify
from termbridge.evaluator.python import PythonBackend, build_helpers
from termbridge.store.base import session_key
from termbridge.store.memory import MemoryVariableStore


class TestClassify:
    @pytest.mark.parametrize("code", ["x = 1", "  y=2", "total = x + 1", "_tmp = []"])
    def test_assignment(self, code: str) -> None:
        assert classify(code) is EvaluationKind.ASSIGNMENT

    @pytest.mark.parametrize(
        "code",
        ["if x: pass", "for i in range(3): pass", "import os", "print(1)", "def f(): pass",
         "raise ValueError()", "del x", "class A: pass"],
    )
    def test_statement(self, code: str) -> None:
        assert classify(code) is EvaluationKind.STATEMENT

    @pytest.mark.parametrize("code", ["x", "x == 1", "1 + 2", "format(1)", "printer", "x += 1"])
    def test_expression(self, code: str) -> None:
        assert classify(code) is EvaluationKind.EXPRESSION


class TestEvaluate:
    def test_expression(self, evaluator: Evaluator, session: SessionKey) -> None:
        result = evaluator.evaluate("1 + 2", session)
        assert result.output == [">>> 1 + 2", "=> 3"]
        assert result.value == 3
        assert result.succeeded

    def test_assignment_renders_bound_value(
        self, evaluator: Evaluator, session: SessionKey
    ) -> None:
        result = evaluator.evaluate("x = 42", session)
        assert result.output == [">>> x = 42", "=> 42"]

    def test_variable_persists_across_calls(
        self, evaluator: Evaluator, session: SessionKey
    ) -> None:
        evaluator.evaluate("x = 42", session)
        result = evaluator.evaluate("x", session)
        assert result.value == 42
        assert result.output[-1] == "=> 42"

    def test_variable_expires_with_ttl(
        self, evaluator: Evaluator, session: SessionKey, clock
    ) -> None:
        evaluator.evaluate("x = 42", session)
        clock.advance(60 * 60 + 1)
        result = evaluator.evaluate("x", session)
        assert result.exit_code == 1
        assert result.output[-1] == "NameError: name 'x' is not defined"

    def test_other_session_is_isolated(self, evaluator: Evaluator, session: SessionKey) -> None:
        evaluator.evaluate("x = 42", session)
        other = session_key("10.9.9.9", 0.0)
        assert evaluator.evaluate("x", other).exit_code == 1

    def test_only_user_bindings_are_stored(
        self, evaluator: Evaluator, memory_store: MemoryVariableStore, session: SessionKey
    ) -> None:
        evaluator.evaluate("a = 1; b = a + 1", session)
        records = memory_store.get(session)
        assert set(records) == {"a", "b"}
        assert records["b"].display == "2"

    def test_printed_output_precedes_result(
        self, evaluator: Evaluator, session: SessionKey
    ) -> None:
        result = evaluator.evaluate('print("hi")', session)
        assert result.output == ['>>> print("hi")', "hi", "=> null"]

    def test_sys_stdout_is_captured(self, evaluator: Evaluator, session: SessionKey) -> None:
        result = evaluator.evaluate("import sys; sys.stdout.write('raw\\n')", session)
        assert "raw" in result.output

    def test_trailing_terminator_is_stripped(
        self, evaluator: Evaluator, session: SessionKey
    ) -> None:
        result = evaluator.evaluate("  x = 5;  ", session)
        assert result.output == [">>> x = 5", "=> 5"]

    def test_return_prefix(self, evaluator: Evaluator, session: SessionKey) -> None:
        assert evaluator.evaluate("return 2 + 3", session).output[-1] == "=> 5"

    def test_statement_fallback_for_augmented_assignment(
        self, evaluator: Evaluator, session: SessionKey
    ) -> None:
        evaluator.evaluate("x = 1", session)
        result = evaluator.evaluate("x += 1", session)
        assert result.succeeded
        assert result.output[-1] == "=> null"

    def test_unpicklable_assignment_is_not_stored(
        self, evaluator: Evaluator, memory_store: MemoryVariableStore, session: SessionKey
    ) -> None:
        result = evaluator.evaluate("f = lambda: 1", session)
        assert result.succeeded
        assert result.output[-1].startswith("=> <function")
        assert "f" not in memory_store.get(session)

    def test_failing_serializer_does_not_escape(
        self, evaluator: Evaluator, memory_store: MemoryVariableStore, session: SessionKey
    ) -> None:
        evaluator.evaluate("y = 2", session)
        result = evaluator.evaluate(
            "x = type('A', (), {'__reduce_ex__': lambda self, p: 1 / 0})()", session
        )
        assert result.succeeded
        assert set(memory_store.get(session)) == {"y"}

    def test_failing_restore_skips_variable(
        self, evaluator: Evaluator, session: SessionKey
    ) -> None:
        evaluator.evaluate("x = 1", session)
        with patch("termbridge.evaluator.evaluator.decode_value", side_effect=RecursionError):
            result = evaluator.evaluate("2 + 2", session)
        assert result.output[-1] == "=> 4"


class TestErrorContainment:
    def test_error_renders_single_line(self, evaluator: Evaluator, session: SessionKey) -> None:
        result = evaluator.evaluate("1 / 0", session)
        assert result.output == [">>> 1 / 0", "ZeroDivisionError: division by zero"]
        assert result.error == "ZeroDivisionError: division by zero"
        assert result.exit_code == 1

    def test_failed_assignment_leaves_store_unchanged(
        self, evaluator: Evaluator, memory_store: MemoryVariableStore, session: SessionKey
    ) -> None:
        evaluator.evaluate("x = 1", session)
        before = memory_store.get(session)
        evaluator.evaluate("y = 2; x = 1 / 0", session)
        assert memory_store.get(session) == before

    def test_partial_output_is_discarded(
        self, evaluator: Evaluator, session: SessionKey
    ) -> None:
        result = evaluator.evaluate('print("partial"); 1 / 0', session)
        assert "partial" not in result.output

    def test_syntax_error(self, evaluator: Evaluator, session: SessionKey) -> None:
        result = evaluator.evaluate("x = (", session)
        assert result.output[-1].startswith("SyntaxError: ")

    def test_system_exit_is_contained(self, evaluator: Evaluator, session: SessionKey) -> None:
        result = evaluator.evaluate("raise SystemExit(3)", session)
        assert result.output[-1] == "SystemExit: 3"


class TestSpecialCommands:
    def test_empty_input_shows_help(self, evaluator: Evaluator, session: SessionKey) -> None:
        result = evaluator.evaluate("   ", session)
        assert result.succeeded
        assert any("60 minutes" in line for line in result.output)

    @pytest.mark.parametrize("command", ["exit", "QUIT", " Exit "])
    def test_exit_clears(
        self, evaluator: Evaluator, memory_store: MemoryVariableStore, session: SessionKey,
        command: str,
    ) -> None:
        evaluator.evaluate("x = 1", session)
        result = evaluator.evaluate(command, session)
        assert result.output == ["Goodbye! Variables cleared."]
        assert memory_store.get(session) == {}

    @pytest.mark.parametrize("command", ["clear", "reset", "RESET"])
    def test_clear(
        self, evaluator: Evaluator, memory_store: MemoryVariableStore, session: SessionKey,
        command: str,
    ) -> None:
        evaluator.evaluate("x = 1", session)
        assert evaluator.evaluate(command, session).output == ["Variables cleared!"]
        assert memory_store.get(session) == {}

    def test_vars_when_empty(self, evaluator: Evaluator, session: SessionKey) -> None:
        assert evaluator.evaluate("vars", session).output == ["No variables stored yet."]

    def test_vars_lists_records(self, evaluator: Evaluator, session: SessionKey) -> None:
        evaluator.evaluate("x = 42", session)
        evaluator.evaluate('name = "Ada"', session)
        result = evaluator.evaluate("variables", session)
        assert result.output == [
            "Stored Variables:",
            '  name (str) = "Ada"',
            "  x (int) = 42",
        ]


class TestHelpers:
    @pytest.fixture
    def evaluator(self, memory_store: MemoryVariableStore) -> Evaluator:
        backend = PythonBackend(helpers=build_helpers(Settings()), preload=["json"])
        return Evaluator(memory_store, backend)

    def test_config_lookup(self, evaluator: Evaluator, session: SessionKey) -> None:
        assert evaluator.evaluate('config("endpoint.port")', session).output[-1] == "=> 8080"

    def test_config_default(self, evaluator: Evaluator, session: SessionKey) -> None:
        result = evaluator.evaluate('config("endpoint.missing", "n/a")', session)
        assert result.output[-1] == '=> "n/a"'

    def test_env_lookup(
        self, evaluator: Evaluator, session: SessionKey, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TERMBRIDGE_TEST_VALUE", "yes")
        result = evaluator.evaluate('env("TERMBRIDGE_TEST_VALUE")', session)
        assert result.output[-1] == '=> "yes"'

    def test_preloaded_module(self, evaluator: Evaluator, session: SessionKey) -> None:
        assert evaluator.evaluate("json.dumps([1])", session).output[-1] == '=> "[1]"'

    def test_helpers_and_modules_are_not_stored(
        self, evaluator: Evaluator, memory_store: MemoryVariableStore, session: SessionKey
    ) -> None:
        evaluator.evaluate("x = json.loads('[1, 2]')", session)
        assert set(memory_store.get(session)) == {"x"}
