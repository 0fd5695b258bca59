"""Tests for transcripts, value inspection and logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

from termbridge.config.settings import LoggingConfig
from termbridge.utils.inspection import describe_object, is_opaque, model_key
from termbridge.utils.logging import setup_logging
from termbridge.utils.transcript import Transcript


class Account:
    def __init__(self, pk):
        self.pk = pk


class TestTranscript:
    def test_forwards_each_line(self) -> None:
        seen: list[str] = []
        transcript = Transcript(seen.append)
        transcript.add("one")
        transcript.extend(["two", "three"])
        transcript.add()
        assert seen == ["one", "two", "three", ""]
        assert transcript.lines == seen
        assert len(transcript) == 4

    def test_lines_is_a_copy(self) -> None:
        transcript = Transcript()
        transcript.add("a")
        transcript.lines.append("b")
        assert transcript.lines == ["a"]


class TestInspection:
    def test_model_key(self) -> None:
        assert model_key(Account(7)) == (True, 7)
        assert model_key(object()) == (False, None)

    def test_describe_object(self) -> None:
        assert describe_object({1, 2}) == "set (2 items)"
        assert describe_object(Account(3)) == "Account #3"
        assert describe_object(Account(None)) == "Account #?"
        assert describe_object(object()) == "object"

    def test_is_opaque(self) -> None:
        assert is_opaque(len)
        assert is_opaque(Account)
        assert is_opaque(b"raw")
        assert not is_opaque(Account(1))


class TestSetupLogging:
    def test_replaces_handlers(self, tmp_path: Path) -> None:
        log_file = tmp_path / "termbridge.log"
        setup_logging(LoggingConfig(level="debug", file=str(log_file)))
        setup_logging(LoggingConfig(level="debug", file=str(log_file)))
        logger = logging.getLogger("termbridge")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        logging.getLogger("termbridge.test").debug("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
        setup_logging()
