"""Repair of free-form command text before dispatch.

Input typed into a browser terminal arrives damaged in predictable
ways: wrapped in an extra pair of quotes, with namespace separators
eaten in transit, with dotted config keys left unquoted, and without
the flags a command needs to run without a TTY. CommandNormalizer
applies one table-driven pass per problem. Every pass is pure and
total, and the full pipeline is idempotent.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from termbridge.domain.models import NormalizedCommand
from termbridge.normalizer.policy import CommandRejected
from termbridge.normalizer.rules import (
    CONCATENATED_NAMESPACES,
    DEFAULT_COMMAND,
    ENTITY_NAMES,
    ENTITY_NAMESPACE,
    HEADLESS_DENIED,
    NO_INTERACTION_FLAG,
    QUOTED_FUNCTIONS,
    SAFETY_FLAG_RULES,
    SafetyFlagRule,
)

if TYPE_CHECKING:
    from termbridge.config.settings import NormalizerConfig

logger = logging.getLogger(__name__)

_QUOTE_CHARS = ("'", '"')


class CommandNormalizer:
    """Table-driven command repair.

    ``normalize`` runs quote stripping, namespace repair, missing-quote
    repair and safety-flag injection. ``normalize_code`` stops before
    the flags and is what REPL input goes through. ``validate`` checks
    a normalized command against the headless deny-list.
    """

    def __init__(
        self,
        entity_names: Iterable[str] = ENTITY_NAMES,
        entity_namespace: str = ENTITY_NAMESPACE,
        concatenated_namespaces: Mapping[str, str] = CONCATENATED_NAMESPACES,
        quoted_functions: Iterable[str] = QUOTED_FUNCTIONS,
        default_command: str = DEFAULT_COMMAND,
        no_interaction_flag: str = NO_INTERACTION_FLAG,
        safety_flags: Iterable[SafetyFlagRule] = SAFETY_FLAG_RULES,
        headless_denied: Mapping[str, str] = HEADLESS_DENIED,
    ) -> None:
        self._entity_namespace = entity_namespace
        # Occurrences already behind a dot are qualified; a second pass leaves them
        self._entity_patterns = [
            (re.compile(rf"(?<![\w.]){re.escape(name)}::"), f"{entity_namespace}{name}.")
            for name in entity_names
        ]
        self._concatenated_patterns = [
            (re.compile(rf"(?<![\w.]){re.escape(joined)}(?=[A-Z])"), prefix)
            for joined, prefix in concatenated_namespaces.items()
        ]
        # The argument must contain a dot or hyphen; bare identifiers
        # may be REPL variables and are left alone.
        self._quote_patterns = [
            (
                re.compile(rf"\b{re.escape(func)}\(\s*([A-Za-z_]\w*(?:[.\-]\w+)+)\s*\)"),
                rf'{func}("\1")',
            )
            for func in quoted_functions
        ]
        self._default_command = default_command
        self._no_interaction_flag = no_interaction_flag
        self._safety_flags = list(safety_flags)
        self._headless_denied = dict(headless_denied)

    @classmethod
    def from_config(cls, config: NormalizerConfig) -> CommandNormalizer:
        return cls(
            entity_names=config.entity_names,
            entity_namespace=config.entity_namespace,
            concatenated_namespaces=config.concatenated_namespaces,
            quoted_functions=config.quoted_functions,
            default_command=config.default_command,
            no_interaction_flag=config.no_interaction_flag,
            safety_flags=config.safety_flags,
            headless_denied=config.headless_denied,
        )

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------

    def normalize(self, raw: str) -> NormalizedCommand:
        """Repair a structured command line and add its safety flags."""
        text = self.strip_quotes(raw)
        if not text:
            text = self._default_command
        text = self.repair_namespaces(text)
        text = self.repair_quotes(text)
        text = self.inject_flags(text)
        return NormalizedCommand.from_text(text)

    def normalize_code(self, raw: str) -> str:
        """Repair REPL code. Empty input stays empty."""
        text = self.strip_quotes(raw)
        text = self.repair_namespaces(text)
        return self.repair_quotes(text)

    def validate(self, command: NormalizedCommand) -> None:
        """Reject verbs that cannot run without an interactive terminal."""
        for denied, reason in self._headless_denied.items():
            if command.verb == denied or command.verb.startswith(f"{denied}:"):
                logger.info("Rejected headless command %r: %s", command.text, reason)
                raise CommandRejected(
                    f"Command '{command.verb}' is not allowed: {reason}",
                    verb=command.verb,
                    reason=reason,
                )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def strip_quotes(self, raw: str) -> str:
        """Remove one or more enclosing quote pairs, unescaping their content."""
        text = raw.strip()
        while len(text) >= 2 and text[0] in _QUOTE_CHARS and text[-1] == text[0]:
            quote = text[0]
            inner = text[1:-1]
            # "a" + "b" starts and ends with a quote but is not one pair
            if re.search(rf"(?<!\\){quote}", inner):
                break
            text = inner.replace('\\"', '"').replace("\\'", "'").strip()
        return text

    def repair_namespaces(self, text: str) -> str:
        if self._entity_namespace not in text:
            for pattern, replacement in self._entity_patterns:
                text = pattern.sub(replacement, text)
        for pattern, prefix in self._concatenated_patterns:
            text = pattern.sub(prefix, text)
        return text

    def repair_quotes(self, text: str) -> str:
        for pattern, replacement in self._quote_patterns:
            text = pattern.sub(replacement, text)
        return text

    def inject_flags(self, text: str) -> str:
        verb = text.split(maxsplit=1)[0] if text.strip() else ""
        for rule in self._safety_flags:
            if not verb.startswith(rule.verb_prefix):
                continue
            if any(verb.startswith(prefix) for prefix in rule.unless_prefixes):
                continue
            if any(_has_flag(text, flag) for flag in rule.unless_flags):
                continue
            if not _has_flag(text, rule.flag):
                text = f"{text} {rule.flag}"
        if not _has_flag(text, self._no_interaction_flag):
            text = f"{text} {self._no_interaction_flag}"
        return text


def _has_flag(text: str, flag: str) -> bool:
    return any(token == flag or token.startswith(f"{flag}=") for token in text.split())
