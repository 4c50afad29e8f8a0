"""Structural equality over JSON-compatible values."""
from __future__ import annotations

import json
from typing import Any


def values_equal(left: Any, right: Any) -> bool:
    """Compare two decoded JSON values.

    Lists compare in order, mappings ignore key order, ``1 == 1.0`` holds and
    booleans never equal numbers.
    """

    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if left is None or right is None:
        return left is None and right is None
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, str) and isinstance(right, str):
        return left == right
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        return len(left) == len(right) and all(values_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, dict) and isinstance(right, dict):
        if set(left) != set(right):
            return False
        return all(values_equal(left[key], right[key]) for key in left)
    return False


def render_value(value: Any) -> str:
    """Render a value the way it appears in candidate-facing messages."""

    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=repr)


__all__ = ["render_value", "values_equal"]
