"""Value-shape helpers shared by store display strings and result rendering."""

from __future__ import annotations

import inspect
from typing import Any

_MISSING = object()


def type_tag(value: Any) -> str:
    return type(value).__name__


def is_array(value: Any) -> bool:
    """Lists, tuples and dicts render as literals; everything else is an object."""
    return isinstance(value, (list, tuple, dict))


def is_opaque(value: Any) -> bool:
    """Values with no useful object form: routines, classes, modules, raw bytes."""
    return (
        inspect.isroutine(value)
        or inspect.isclass(value)
        or inspect.ismodule(value)
        or isinstance(value, (bytes, bytearray))
    )


def has_own_str(value: Any) -> bool:
    return type(value).__str__ is not object.__str__


def item_count(value: Any) -> int | None:
    try:
        return len(value)
    except TypeError:
        return None


def model_key(value: Any) -> tuple[bool, Any]:
    """Return (is_model_like, key) for objects carrying a ``pk`` or ``id``."""
    for attr in ("pk", "id"):
        key = getattr(value, attr, _MISSING)
        if key is not _MISSING and not callable(key):
            return True, key
    return False, None


def describe_object(value: Any) -> str:
    """Short form of a non-scalar object: item count, model key, or class name."""
    count = item_count(value)
    if count is not None:
        return f"{type_tag(value)} ({count} items)"
    is_model, key = model_key(value)
    if is_model:
        return f"{type_tag(value)} #{'?' if key is None else key}"
    return type_tag(value)
