"""Rendering of evaluation results into the ``=>`` line."""

from __future__ import annotations

import json
import numbers
import pprint
from typing import Any

from termbridge.utils.inspection import (
    describe_object,
    has_own_str,
    is_array,
    is_opaque,
    type_tag,
)

# Arrays up to this size render in full
FULL_LIMIT = 5
PREVIEW_ITEMS = 3


def render_result(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, numbers.Number):
        return str(value)
    if isinstance(value, str):
        return f'"{value}"'
    if is_array(value):
        return render_array(value)
    if is_opaque(value):
        return pprint.pformat(value)
    if has_own_str(value):
        return f'"{value}"'
    return describe_object(value)


def render_array(value: list | tuple | dict) -> str:
    """Full JSON for small arrays, a count and a preview for larger ones."""
    if len(value) <= FULL_LIMIT:
        try:
            return json.dumps(value, indent=4, default=str)
        except (TypeError, ValueError):
            # Non-string dict keys, circular references
            return pprint.pformat(value)

    items = list(value.items()) if isinstance(value, dict) else list(enumerate(value))
    lines = [f"{type_tag(value)} ({len(value)} items) ["]
    for key, item in items[:PREVIEW_ITEMS]:
        lines.append(f"  {_json(key)} => {_preview(item)}")
    lines.append(f"  ... and {len(value) - PREVIEW_ITEMS} more")
    lines.append("]")
    return "\n".join(lines)


def _preview(item: Any) -> str:
    if isinstance(item, str):
        return f'"{item}"'
    return _json(item)


def _json(value: Any) -> str:
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return str(value)
