from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from contracts.grouping_key import OBJECT, GroupingKeyDescriptor
from contracts.errors import GroupingKeyError


class GroupingMode(str, Enum):
    CONCATENATE = "Concatenate"
    SPLIT = "Split"
    SPLIT_BY_FILE = "SplitByFile"
    OVERWRITE = "Overwrite"
    MERGE = "Merge"


@dataclass(frozen=True, slots=True)
class MappingConfig:
    """
    Artifact -> group mapping parameters.

    The grouping key is orthogonal to the mode: when present, every artifact
    is expanded first and the mode then applies inside each selector bucket.
    """

    mode: GroupingMode = GroupingMode.CONCATENATE
    grouping_key: GroupingKeyDescriptor | None = None

    def validate(self) -> None:
        if not isinstance(self.mode, GroupingMode):
            raise ValueError(f"mode must be a GroupingMode, got {self.mode!r}")
        if self.grouping_key is not None:
            if not isinstance(self.grouping_key, GroupingKeyDescriptor):
                raise GroupingKeyError("grouping_key must be a GroupingKeyDescriptor")
            if self.grouping_key.type != OBJECT:
                raise GroupingKeyError(
                    f"Root grouping key must be of type 'object', got {self.grouping_key.type!r}"
                )

    def __post_init__(self) -> None:
        self.validate()

    @staticmethod
    def build(mode: str | GroupingMode = GroupingMode.CONCATENATE, grouping_key: dict | None = None) -> "MappingConfig":
        """Convenience constructor from plain strings/dicts (CLI, JSON config)."""

        try:
            resolved_mode = GroupingMode(mode)
        except ValueError:
            valid = ", ".join(m.value for m in GroupingMode)
            raise ValueError(f"Unknown grouping mode {mode!r}; expected one of: {valid}") from None
        descriptor = None if grouping_key is None else GroupingKeyDescriptor.from_dict(grouping_key)
        return MappingConfig(mode=resolved_mode, grouping_key=descriptor)
