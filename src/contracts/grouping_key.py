from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import GroupingKeyError

OBJECT = "object"
ARRAY = "array"
# Every scalar leaf behaves the same way: its value becomes part of the selector key.
LEAF_TYPES = frozenset({"string", "number", "integer", "boolean"})
CONTAINER_TYPES = frozenset({OBJECT, ARRAY})


@dataclass(frozen=True, slots=True)
class GroupingKeyDescriptor:
    """
    Recursive description of the nested fields that decide group membership.

    - leaf (`string`, ...): terminates descent, value joins the selector key
    - `array`: one output record per element
    - `object`: descends without duplicating
    """

    type: str
    children: dict[str, "GroupingKeyDescriptor"] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.type not in CONTAINER_TYPES and self.type not in LEAF_TYPES:
            raise GroupingKeyError(f"Unknown grouping key type: {self.type!r}")
        if not isinstance(self.children, dict):
            raise GroupingKeyError(f"children must be a mapping, got {type(self.children).__name__}")
        if self.is_leaf and self.children:
            raise GroupingKeyError(f"Leaf grouping key of type {self.type!r} cannot declare children")
        for name, child in self.children.items():
            if not isinstance(name, str) or name == "":
                raise GroupingKeyError(f"Grouping key field names must be non-empty strings, got {name!r}")
            if not isinstance(child, GroupingKeyDescriptor):
                raise GroupingKeyError(f"Grouping key child {name!r} is not a descriptor")

    @property
    def is_leaf(self) -> bool:
        return self.type in LEAF_TYPES

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"type": self.type}
        if self.children:
            out["children"] = {k: v.to_dict() for k, v in self.children.items()}
        return out

    @staticmethod
    def from_dict(d: Any) -> "GroupingKeyDescriptor":
        if not isinstance(d, dict):
            raise GroupingKeyError(f"Grouping key descriptor must be a mapping, got {type(d).__name__}")
        if "type" not in d:
            raise GroupingKeyError("Grouping key descriptor is missing 'type'")
        children_raw = d.get("children") or {}
        if not isinstance(children_raw, dict):
            raise GroupingKeyError(f"children must be a mapping, got {type(children_raw).__name__}")
        return GroupingKeyDescriptor(
            type=str(d["type"]),
            children={str(k): GroupingKeyDescriptor.from_dict(v) for k, v in children_raw.items()},
        )

    @staticmethod
    def combine(*descriptors: "GroupingKeyDescriptor") -> "GroupingKeyDescriptor":
        """
        Union several descriptors into one (children merged recursively).

        Two descriptors naming the same field with different types are rejected.
        """

        if not descriptors:
            raise GroupingKeyError("combine() needs at least one descriptor")
        out = descriptors[0]
        for other in descriptors[1:]:
            out = _combine_pair(out, other, path="$")
        return out


def _combine_pair(a: GroupingKeyDescriptor, b: GroupingKeyDescriptor, *, path: str) -> GroupingKeyDescriptor:
    if a.type != b.type:
        raise GroupingKeyError(f"Conflicting grouping key types at {path}: {a.type!r} vs {b.type!r}")
    children = dict(a.children)
    for name, child in b.children.items():
        if name in children:
            children[name] = _combine_pair(children[name], child, path=f"{path}.{name}")
        else:
            children[name] = child
    return GroupingKeyDescriptor(type=a.type, children=children)
