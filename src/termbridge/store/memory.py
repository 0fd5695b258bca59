"""In-process variable store backend."""

from __future__ import annotations

from termbridge.domain.models import VariableRecord
from termbridge.store.base import Entry, VariableStore


class MemoryVariableStore(VariableStore):
    """Keeps sessions in a dict. Sessions are lost on restart."""

    name = "memory"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._entries: dict[str, Entry] = {}

    def _read(self, key: str) -> Entry | None:
        return self._entries.get(key)

    def _write(self, key: str, records: dict[str, VariableRecord], expires_at: float) -> None:
        self._entries[key] = (dict(records), expires_at)

    def _delete(self, key: str) -> None:
        self._entries.pop(key, None)
