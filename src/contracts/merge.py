from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .errors import MergeWarning
from .windows import FileAssignment, MergedGroup


@dataclass(frozen=True, slots=True)
class BlankPageReview:
    """A blank (unnamed) page sitting between two different groups; needs a human/LLM decision."""

    file_id: str
    page_number: int
    previous_group: str
    next_group: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_id": self.file_id,
            "page_number": self.page_number,
            "previous_group": self.previous_group,
            "next_group": self.next_group,
        }


@dataclass(frozen=True, slots=True)
class MergeResult:
    """
    Canonical, page-ordered partition produced from all window results.

    `file_to_group` is the plain file_id -> group name map; `file_meta` holds
    the confidence/explanation metadata used for duplicate review.
    """

    groups: list[MergedGroup]
    file_to_group: dict[str, str]
    file_meta: dict[str, FileAssignment]
    unresolved_blank_files: list[BlankPageReview] = field(default_factory=list)
    warnings: list[MergeWarning] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        # Warnings mean some window data was skipped; the partition itself is still valid.
        return not self.warnings

    def group_named(self, name: str) -> MergedGroup | None:
        for g in self.groups:
            if g.name == name:
                return g
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "groups": [g.to_dict() for g in self.groups],
            "file_to_group": dict(self.file_to_group),
            "file_meta": {k: v.to_dict() for k, v in self.file_meta.items()},
            "unresolved_blank_files": [b.to_dict() for b in self.unresolved_blank_files],
            "warnings": [w.to_dict() for w in self.warnings],
            "meta": dict(self.meta),
        }


def empty_merge_result(meta: dict[str, Any] | None = None, warnings: list[MergeWarning] | None = None) -> MergeResult:
    return MergeResult(
        groups=[],
        file_to_group={},
        file_meta={},
        warnings=list(warnings or []),
        meta=dict(meta or {}),
    )
