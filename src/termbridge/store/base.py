"""Abstract base class for session-scoped variable storage.

A stateless request/response cycle simulates a continuous REPL by
persisting the variables each evaluation binds under a session key
and rebuilding them before the next evaluation. Backends only move
records in and out of their medium; TTL handling, record construction
and failure containment live here so every backend behaves the same.
"""

from __future__ import annotations

import hashlib
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from termbridge.domain.models import SessionKey, VariableRecord
from termbridge.store.records import make_record

logger = logging.getLogger(__name__)

LOCAL_IDENTITY = "localhost"
SESSION_PREFIX = "termbridge_session_"

Entry = tuple[dict[str, VariableRecord], float]


class VariableStoreError(Exception):
    """Raised by backends when their medium is unavailable.

    Never escapes a VariableStore public method.
    """

    def __init__(self, message: str, backend: str = "") -> None:
        self.backend = backend
        super().__init__(message)


def session_key(identity: str | None, now: float, window_seconds: int = 300) -> SessionKey:
    """Derive the session key for a caller at a point in time.

    The same identity within the same fixed-width window always maps to
    the same key. A missing identity falls back to a local marker.
    """
    identity = identity or LOCAL_IDENTITY
    bucket = int(now // window_seconds)
    digest = hashlib.md5(f"{identity}{bucket}".encode()).hexdigest()
    return SessionKey(identity=identity, bucket=bucket, value=f"{SESSION_PREFIX}{digest}")


class VariableStore(ABC):
    """Maps a session key to a snapshot of named variables with a TTL.

    Expiry is lazy: an expired session simply reads as empty. Any
    backend failure degrades to empty reads and no-op writes, so a
    broken store costs session continuity and nothing else.

    Example usage::

        store = MemoryVariableStore(ttl_minutes=60)
        store.merge(key, {"x": 42})
        store.get(key)["x"].display  # "42"
    """

    name = "base"

    def __init__(self, ttl_minutes: int = 60, clock: Callable[[], float] = time.time) -> None:
        self._ttl_seconds = ttl_minutes * 60
        self._clock = clock

    @property
    def ttl_minutes(self) -> int:
        return self._ttl_seconds // 60

    def get(self, session: SessionKey) -> dict[str, VariableRecord]:
        try:
            entry = self._read(session.value)
        except VariableStoreError as e:
            logger.warning("Variable store %s unavailable, reading empty: %s", self.name, e)
            return {}
        if entry is None:
            return {}
        records, expires_at = entry
        if expires_at <= self._clock():
            logger.debug("Session %s expired", session.value)
            return {}
        return dict(records)

    def merge(self, session: SessionKey, bindings: Mapping[str, Any]) -> None:
        """Store new bindings, replacing same-named records and keeping the rest."""
        records = self.get(session)
        for name, value in bindings.items():
            try:
                records[name] = make_record(name, value)
            except Exception as e:
                logger.warning("Skipping variable %r: cannot serialize %s (%s)",
                               name, type(value).__name__, e)
        try:
            self._write(session.value, records, self._clock() + self._ttl_seconds)
        except VariableStoreError as e:
            logger.warning("Variable store %s unavailable, dropping write: %s", self.name, e)

    def clear(self, session: SessionKey) -> None:
        try:
            self._delete(session.value)
        except VariableStoreError as e:
            logger.warning("Variable store %s unavailable, cannot clear: %s", self.name, e)

    @abstractmethod
    def _read(self, key: str) -> Entry | None:
        """Return (records, expires_at) for a key, or None if absent.

        Raises:
            VariableStoreError: If the backing medium cannot be read.
        """
        ...

    @abstractmethod
    def _write(self, key: str, records: dict[str, VariableRecord], expires_at: float) -> None:
        """Replace the snapshot stored under a key.

        Raises:
            VariableStoreError: If the backing medium cannot be written.
        """
        ...

    @abstractmethod
    def _delete(self, key: str) -> None:
        """Remove a key. Deleting an absent key is not an error."""
        ...
