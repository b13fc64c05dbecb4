from __future__ import annotations

import json
from typing import Any

from common.logger import get_logger
from contracts.errors import GroupingKeyError
from contracts.grouping_key import ARRAY, OBJECT, GroupingKeyDescriptor

logger = get_logger(__name__)

# (key part, sliced value); a key part of None contributes nothing to the selector key.
_Option = tuple[Any, Any]


def stable_json(x: Any) -> str:
    return json.dumps(x, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def selector_key(key_fields: dict[str, Any]) -> str:
    return "" if not key_fields else stable_json(key_fields)


def expand_by_grouping_key(value: Any, descriptor: GroupingKeyDescriptor) -> list[tuple[str, Any]]:
    """
    Expand one JSON value into (selector_key, sliced_value) candidates.

    Every `array` descriptor multiplies the candidate set by the number of
    elements it selects from; fields the descriptor does not mention are
    carried unchanged into every slice. The selector key is the stable JSON of
    exactly the fields reached by leaf descriptors, so two candidates with
    equal keys belong together no matter how their other fields differ.
    """

    if descriptor.type != OBJECT:
        raise GroupingKeyError(f"Root grouping key must be of type 'object', got {descriptor.type!r}")

    if not descriptor.children:
        return [("", value)]

    if not isinstance(value, dict):
        logger.warning("Grouping key expects an object at $, got %s; passing value through", type(value).__name__)
        return [("", value)]

    return [(selector_key(key), sliced) for key, sliced in _expand_object(value, descriptor, path="$")]


def _expand_object(
    value: dict[str, Any], descriptor: GroupingKeyDescriptor, *, path: str
) -> list[tuple[dict[str, Any], dict[str, Any]]]:
    candidates: list[tuple[dict[str, Any], dict[str, Any]]] = [({}, dict(value))]

    for name, child in descriptor.children.items():
        if name not in value:
            logger.debug("Grouping key field %s.%s not present; skipping", path, name)
            continue

        options = _expand_field(value[name], child, path=f"{path}.{name}")
        if options is None:
            continue

        expanded: list[tuple[dict[str, Any], dict[str, Any]]] = []
        for key, sliced in candidates:
            for key_part, slice_part in options:
                new_key = key if key_part is None else {**key, name: key_part}
                expanded.append((new_key, {**sliced, name: slice_part}))
        candidates = expanded

    return candidates


def _expand_field(value: Any, descriptor: GroupingKeyDescriptor, *, path: str) -> list[_Option] | None:
    if descriptor.is_leaf:
        return [(value, value)]

    if descriptor.type == OBJECT:
        if not isinstance(value, dict):
            logger.warning(
                "Ignoring %s: grouping key type 'object' does not match value %s", path, stable_json(value)
            )
            return None
        if not descriptor.children:
            # A childless object selects on its whole value.
            return [(value, value)]
        return [(key or None, sliced) for key, sliced in _expand_object(value, descriptor, path=path)]

    if descriptor.type == ARRAY:
        if not isinstance(value, list):
            logger.warning(
                "Ignoring %s: grouping key type 'array' does not match value %s", path, stable_json(value)
            )
            return None
        if not value:
            return None

        options: list[_Option] = []
        for i, item in enumerate(value):
            if isinstance(item, dict) and descriptor.children:
                options.extend(
                    (key or None, sliced)
                    for key, sliced in _expand_object(item, descriptor, path=f"{path}[{i}]")
                )
            else:
                # Scalars (and elements with nothing left to descend into) are their own key.
                options.append((item, item))
        return options

    raise GroupingKeyError(f"Unsupported grouping key type {descriptor.type!r} at {path}")
