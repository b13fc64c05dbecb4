from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ConflictRule(str, Enum):
    LAST_WRITER = "last_writer"  # later window's assignment wins outright
    HIGHEST_CONFIDENCE = "highest_confidence"  # strictly higher confidence wins, ties keep the earlier one


class BlankPageHandling(str, Enum):
    KEEP = "keep"  # blank pages stay in the "" group
    JOIN_ADJACENT = "join_adjacent"  # join the neighbouring group when unambiguous
    DISCARD = "discard"  # drop blank pages from the output


MIN_WINDOW_SIZE = 2
MAX_WINDOW_SIZE = 100


@dataclass(frozen=True, slots=True)
class WindowMergeConfig:
    """
    Window building + reconciliation parameters.

    Defaults are explicit constants. `window_size` bounds apply to configured
    runs; build_windows() itself degrades to an empty list for sizes < 2.
    """

    window_size: int = 3
    conflict_rule: ConflictRule = ConflictRule.LAST_WRITER
    blank_page_handling: BlankPageHandling = BlankPageHandling.KEEP

    # Confidence used when a window omits it (legacy integer page refs).
    default_confidence: float = 3
    # Files below this confidence with conflicting votes are reported for review.
    low_confidence_threshold: float = 3

    def validate(self) -> None:
        if not (MIN_WINDOW_SIZE <= self.window_size <= MAX_WINDOW_SIZE):
            raise ValueError(f"window_size must be within [{MIN_WINDOW_SIZE}, {MAX_WINDOW_SIZE}]")
        if not isinstance(self.conflict_rule, ConflictRule):
            raise ValueError(f"conflict_rule must be a ConflictRule, got {self.conflict_rule!r}")
        if not isinstance(self.blank_page_handling, BlankPageHandling):
            raise ValueError(f"blank_page_handling must be a BlankPageHandling, got {self.blank_page_handling!r}")
        if self.default_confidence < 0:
            raise ValueError("default_confidence must be >= 0")
        if self.low_confidence_threshold < 0:
            raise ValueError("low_confidence_threshold must be >= 0")

    def __post_init__(self) -> None:
        self.validate()

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_size": self.window_size,
            "conflict_rule": self.conflict_rule.value,
            "blank_page_handling": self.blank_page_handling.value,
            "default_confidence": self.default_confidence,
            "low_confidence_threshold": self.low_confidence_threshold,
        }


@dataclass(frozen=True, slots=True)
class DuplicateDetectionConfig:
    """
    Group-name similarity parameters.

    Scores are banded: exact match after normalization is 1.0, a
    "Name" vs "Name (Qualifier)" pair scores `location_variant_score`,
    containment scores at least `containment_floor`, everything else falls
    back to normalized edit-distance similarity.
    """

    similarity_threshold: float = 0.7
    containment_floor: float = 0.85
    location_variant_score: float = 0.95
    sample_file_limit: int = 3

    def validate(self) -> None:
        for name in ("similarity_threshold", "containment_floor", "location_variant_score"):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                raise ValueError(f"{name} must be within [0, 1]")
        if self.sample_file_limit < 0:
            raise ValueError("sample_file_limit must be >= 0")

    def __post_init__(self) -> None:
        self.validate()

    def to_dict(self) -> dict[str, Any]:
        return {
            "similarity_threshold": self.similarity_threshold,
            "containment_floor": self.containment_floor,
            "location_variant_score": self.location_variant_score,
            "sample_file_limit": self.sample_file_limit,
        }
