from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class WindowFile:
    """
    One file of the ordered sequence.

    `page_number` is the ordering key: files are sorted, windowed and grouped
    by it, so it must follow sequence order (position) even when the source
    documents number their pages differently.
    """

    file_id: str
    page_number: int

    def to_dict(self) -> dict[str, Any]:
        return {"file_id": self.file_id, "page_number": self.page_number}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "WindowFile":
        return WindowFile(file_id=str(d["file_id"]), page_number=int(d["page_number"]))


@dataclass(frozen=True, slots=True)
class Window:
    """
    Contiguous slice of the ordered file list.

    `start_index`/`end_index` are inclusive indices into the ordered list the
    window was cut from. Adjacent windows share exactly one boundary file.
    """

    window_index: int
    start_index: int
    end_index: int
    files: list[WindowFile]

    @property
    def start_page(self) -> int:
        return min(f.page_number for f in self.files) if self.files else 0

    @property
    def end_page(self) -> int:
        return max(f.page_number for f in self.files) if self.files else 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "window_index": self.window_index,
            "start_index": self.start_index,
            "end_index": self.end_index,
            "window_start": self.start_page,
            "window_end": self.end_page,
            "files": [f.to_dict() for f in self.files],
        }


@dataclass(frozen=True, slots=True)
class PageAssignment:
    """One page's classification inside one window (normalized from either payload shape)."""

    page_number: int
    group_name: str
    description: str = ""
    confidence: float | None = None
    explanation: str = ""
    belongs_to_previous: float | None = None
    file_id: str | None = None  # only when the payload referenced the file directly

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_number": self.page_number,
            "group_name": self.group_name,
            "description": self.description,
            "confidence": self.confidence,
            "explanation": self.explanation,
            "belongs_to_previous": self.belongs_to_previous,
            "file_id": self.file_id,
        }


@dataclass(frozen=True, slots=True)
class WindowResult:
    window: Window
    assignments: list[PageAssignment]
    source_shape: str = "groups"  # "groups" | "files"


@dataclass(frozen=True, slots=True)
class AssignmentVote:
    group_name: str
    confidence: float
    explanation: str
    window_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "group_name": self.group_name,
            "confidence": self.confidence,
            "explanation": self.explanation,
            "window_index": self.window_index,
        }


@dataclass(frozen=True, slots=True)
class FileAssignment:
    """Final assignment of one file plus every vote the windows cast for it."""

    file_id: str
    page_number: int
    group_name: str
    description: str
    confidence: float
    explanation: str
    belongs_to_previous: float | None = None
    votes: list[AssignmentVote] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "file_id": self.file_id,
            "page_number": self.page_number,
            "group_name": self.group_name,
            "description": self.description,
            "confidence": self.confidence,
            "explanation": self.explanation,
            "belongs_to_previous": self.belongs_to_previous,
            "votes": [v.to_dict() for v in self.votes],
        }


@dataclass(frozen=True, slots=True)
class ConfidenceSummary:
    avg: float
    min: float
    max: float

    def to_dict(self) -> dict[str, Any]:
        return {"avg": self.avg, "min": self.min, "max": self.max}


@dataclass(frozen=True, slots=True)
class MergedGroup:
    """A final group; `files` are ascending by sequence position (WindowFile.page_number)."""

    name: str
    description: str
    files: list[WindowFile]  # ascending page_number
    confidence_summary: ConfidenceSummary | None = None

    @property
    def file_ids(self) -> list[str]:
        return [f.file_id for f in self.files]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "files": [f.to_dict() for f in self.files],
            "confidence_summary": None if self.confidence_summary is None else self.confidence_summary.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class DuplicateCandidate:
    group1: str
    group2: str
    similarity: float  # within [0, 1]

    def to_dict(self) -> dict[str, Any]:
        return {"group1": self.group1, "group2": self.group2, "similarity": self.similarity}
