"""JSON-file variable store backend.

One file per session under a storage directory, so REPL sessions
survive server restarts. Writes go to a temporary file that is then
moved into place, which keeps every snapshot whole.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from termbridge.domain.models import VariableRecord
from termbridge.store.base import Entry, VariableStore, VariableStoreError

logger = logging.getLogger(__name__)


class FileVariableStore(VariableStore):
    name = "file"

    def __init__(self, directory: Path | str, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path(self, key: str) -> Path:
        return self._directory / f"{key}.json"

    def _read(self, key: str) -> Entry | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            records = {
                name: VariableRecord.model_validate(raw)
                for name, raw in data["variables"].items()
            }
            return records, float(data["expires_at"])
        except (OSError, ValueError, KeyError, TypeError, ValidationError) as e:
            raise VariableStoreError(f"Cannot read {path}: {e}", backend=self.name) from e

    def _write(self, key: str, records: dict[str, VariableRecord], expires_at: float) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".tmp")
        data = {
            "expires_at": expires_at,
            "variables": {name: record.model_dump() for name, record in records.items()},
        }
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data), encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise VariableStoreError(f"Cannot write {path}: {e}", backend=self.name) from e
        logger.debug("Saved %d variables to %s", len(records), path)

    def _delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise VariableStoreError(f"Cannot delete session {key}: {e}", backend=self.name) from e
