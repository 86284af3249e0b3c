"""Helpers for compact debug logging.

Actions and state snapshots can be arbitrarily large. This module trims
them to something readable before they reach a DEBUG log line.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def summarize_for_log(value: Any, *, max_string: int = 256, max_items: int = 20, _depth: int = 0) -> Any:
    """Return a trimmed copy of *value* suitable for debug logs."""
    if _depth > 8:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes:{len(value)}b>"

    if isinstance(value, Mapping):
        summary: dict[str, Any] = {}
        for index, (k, v) in enumerate(value.items()):
            if index >= max_items:
                summary["…"] = f"<{len(value) - max_items} more>"
                break
            summary[str(k)] = summarize_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
        return summary

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        items = [
            summarize_for_log(v, max_string=max_string, max_items=max_items, _depth=_depth + 1)
            for v in list(value)[:max_items]
        ]
        if len(value) > max_items:
            items.append(f"<{len(value) - max_items} more>")
        return items

    # Fallback: represent unknown objects without dumping internals.
    return repr(value)
