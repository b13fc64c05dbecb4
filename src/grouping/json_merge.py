from __future__ import annotations

from typing import Any, Iterable


def merge_json_values(left: Any, right: Any) -> Any:
    """
    Merge two JSON values, collecting rather than overwriting.

    - dict + dict: merged field by field (recursively)
    - anything else: both sides are collected into one list, left first;
      lists contribute their elements, scalars contribute themselves

    Values are never deduplicated, so merging {"name": "A"} with {"name": "A"}
    yields {"name": ["A", "A"]}.
    """

    if isinstance(left, dict) and isinstance(right, dict):
        out = dict(left)
        for key, value in right.items():
            out[key] = merge_json_values(out[key], value) if key in out else value
        return out
    return _as_list(left) + _as_list(right)


def merge_json_documents(values: Iterable[Any]) -> Any:
    """Fold merge_json_values over `values` in order; an empty input merges to {}."""

    merged: Any = None
    first = True
    for value in values:
        if first:
            merged = value
            first = False
        else:
            merged = merge_json_values(merged, value)
    return {} if first else merged


def _as_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else [value]
