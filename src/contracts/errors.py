from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class MergeWarning:
    """
    Structured record for data that was skipped rather than failing a call.

    `code` is a stable machine-readable identifier; `detail` carries the
    offending values so a reviewer can trace the loss.
    """

    code: str
    message: str
    detail: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class GroupingKeyError(ValueError):
    """Raised for structurally invalid grouping-key descriptors (caller-authored config)."""


class DuplicatePageError(ValueError):
    """
    A single page was placed in more than one group.

    This is never resolved silently: it signals a bug in either the upstream
    classification or the reconciliation and must reach the caller.
    """

    def __init__(self, *, page_number: int, first_group: str, second_group: str) -> None:
        self.page_number = page_number
        self.first_group = first_group
        self.second_group = second_group
        super().__init__(
            f"Invalid file organization: Page {page_number} appears in multiple groups. "
            f"First group: {first_group!r}. Second group: {second_group!r}. "
            "Each page must belong to exactly ONE group."
        )

    def to_warning(self) -> MergeWarning:
        return MergeWarning(
            code="DUPLICATE_PAGE",
            message=str(self),
            detail={
                "page_number": self.page_number,
                "first_group": self.first_group,
                "second_group": self.second_group,
            },
        )
