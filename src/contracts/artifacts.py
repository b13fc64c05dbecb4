from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


@dataclass(frozen=True, slots=True)
class Page:
    """A single ordered file/image attached to an artifact."""

    file_id: str
    page_number: int
    filename: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"file_id": self.file_id, "page_number": self.page_number, "filename": self.filename}

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Page":
        return Page(
            file_id=str(d.get("file_id", d.get("id"))),
            page_number=int(d["page_number"]),
            filename=str(d.get("filename") or ""),
        )


@dataclass(frozen=True, slots=True)
class Artifact:
    """
    Opaque content unit: a JSON tree plus ordered page references.

    Artifacts are owned by the external artifact store; nothing in this
    repository mutates them. `position` defines the total order among inputs.
    """

    artifact_id: str
    json_content: Any
    position: int = 0
    pages: tuple[Page, ...] = ()
    name: str = ""
    text_content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "artifact_id": self.artifact_id,
            "name": self.name,
            "position": self.position,
            "json_content": self.json_content,
            "text_content": self.text_content,
            "pages": [p.to_dict() for p in self.pages],
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Artifact":
        position = int(d.get("position") or 0)
        pages_raw = d.get("pages")
        if pages_raw is None:
            pages_raw = d.get("stored_files") or []
        artifact_id = d.get("artifact_id", d.get("id"))
        return Artifact(
            artifact_id=str(position if artifact_id is None else artifact_id),
            json_content=d.get("json_content"),
            position=position,
            pages=tuple(Page.from_dict(p) for p in pages_raw),
            name=str(d.get("name") or ""),
            text_content=(None if d.get("text_content") is None else str(d["text_content"])),
        )


class RecordKind(str, Enum):
    FILES = "files"  # union of every page across a mapping call's inputs
    PAGE = "page"  # exactly one page (SplitByFile)
    SLICE = "slice"  # one grouping-key expansion of a source artifact
    MERGED = "merged"  # deep merge of several sources


@dataclass(frozen=True, slots=True)
class SyntheticRecord:
    """
    Artifact-like value manufactured during a single mapping call.

    It has no stable identity; `source_artifact_ids` only records provenance.
    """

    name: str
    kind: RecordKind
    json_content: Any = None
    pages: tuple[Page, ...] = ()
    text_content: str | None = None
    source_artifact_ids: tuple[str, ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind.value,
            "json_content": self.json_content,
            "text_content": self.text_content,
            "pages": [p.to_dict() for p in self.pages],
            "source_artifact_ids": list(self.source_artifact_ids),
        }


GroupMember = Union[Artifact, SyntheticRecord]


def member_to_dict(member: GroupMember) -> dict[str, Any]:
    out = member.to_dict()
    if isinstance(member, Artifact):
        out["kind"] = "artifact"
    return out
