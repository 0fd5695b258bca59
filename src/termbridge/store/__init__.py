"""Session-scoped variable storage for the persisted REPL.

Backends:
    - MemoryVariableStore: in-process dict
    - FileVariableStore: one JSON file per session
"""

from termbridge.store.base import VariableStore, VariableStoreError, session_key
from termbridge.store.file import FileVariableStore
from termbridge.store.memory import MemoryVariableStore

__all__ = [
    "FileVariableStore",
    "MemoryVariableStore",
    "VariableStore",
    "VariableStoreError",
    "session_key",
]
