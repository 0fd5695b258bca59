"""Construction and decoding of persisted REPL variables."""

from __future__ import annotations

import base64
import numbers
import pickle
from typing import Any

from termbridge.domain.models import VariableRecord
from termbridge.utils.inspection import describe_object, is_array, is_opaque, type_tag

DISPLAY_LIMIT = 50
DISPLAY_KEEP = 47


def encode_value(value: Any) -> str:
    """Serialize a value to base64 pickle.

    Raises:
        pickle.PicklingError, TypeError, AttributeError: The value
            cannot be pickled (modules, open files, lambdas, ...).
    """
    return base64.b64encode(pickle.dumps(value)).decode("ascii")


def decode_value(payload: str) -> Any:
    return pickle.loads(base64.b64decode(payload.encode("ascii")))


def display_value(value: Any) -> str:
    """Compact, possibly truncated rendering used in variable listings."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, numbers.Number):
        return str(value)
    if isinstance(value, str):
        if len(value) > DISPLAY_LIMIT:
            value = value[:DISPLAY_KEEP] + "..."
        return f'"{value}"'
    if is_array(value):
        return f"{type_tag(value)} ({len(value)} items)"
    if is_opaque(value):
        return str(value)
    return describe_object(value)


def make_record(name: str, value: Any) -> VariableRecord:
    return VariableRecord(
        name=name,
        type=type_tag(value),
        display=display_value(value),
        payload=encode_value(value),
    )
