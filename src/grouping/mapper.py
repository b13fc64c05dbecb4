from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from common.logger import get_logger
from contracts.artifacts import Artifact, GroupMember, Page, RecordKind, SyntheticRecord

from .config import GroupingMode, MappingConfig
from .grouping_key import expand_by_grouping_key
from .json_merge import merge_json_documents

logger = get_logger(__name__)

DEFAULT_GROUP_KEY = "default"


@dataclass(frozen=True, slots=True)
class _Candidate:
    selector: str
    json_content: Any
    source: Artifact
    is_whole: bool  # json_content is the source artifact's own, unexpanded content


def union_pages(artifacts: Iterable[Artifact]) -> tuple[Page, ...]:
    """Every page across `artifacts`, de-duplicated by file_id, first occurrence wins."""

    seen: set[str] = set()
    out: list[Page] = []
    for artifact in artifacts:
        for page in artifact.pages:
            if page.file_id in seen:
                continue
            seen.add(page.file_id)
            out.append(page)
    return tuple(out)


def map_artifacts_to_groups(
    artifacts: Sequence[Artifact], config: MappingConfig | None = None
) -> dict[str, list[GroupMember]]:
    """
    Partition/merge artifacts into named groups.

    Returns group key -> ordered members. Group order is the order in which
    each key is first encountered; groups that end up empty are dropped.

    Modes (applied inside each grouping-key bucket when a key is configured):
    - Concatenate: one group with every member, input order preserved
    - Split: one group per artifact, each also holding a shared "files"
      record with the union of every page across all inputs
    - SplitByFile: one group per page: owning artifact + that single page
    - Overwrite: one group holding only the last member
    - Merge: one group holding a single deep-merged record
    """

    cfg = MappingConfig() if config is None else config
    cfg.validate()

    items = list(artifacts)
    if not items:
        return {}

    # Computed once per call and shared by every Split group.
    all_pages = union_pages(items)
    files_record: SyntheticRecord | None = None
    if all_pages:
        files_record = SyntheticRecord(
            name="Files",
            kind=RecordKind.FILES,
            pages=all_pages,
            source_artifact_ids=_unique_ids(items),
        )

    buckets = _bucket_candidates(items, cfg)
    groups: dict[str, list[GroupMember]] = {}

    for selector, candidates in buckets.items():
        base_key = selector or DEFAULT_GROUP_KEY

        if cfg.mode == GroupingMode.CONCATENATE:
            _add_group(groups, base_key, [_as_member(c, f"{base_key}:{i}") for i, c in enumerate(candidates)])

        elif cfg.mode == GroupingMode.OVERWRITE:
            last = candidates[-1]
            _add_group(groups, base_key, [_as_member(last, f"{base_key}:0")])

        elif cfg.mode == GroupingMode.MERGE:
            _add_group(groups, base_key, [_merged_record(base_key, candidates)])

        elif cfg.mode == GroupingMode.SPLIT:
            for c in candidates:
                key = _join_key(selector, c.source.artifact_id)
                members: list[GroupMember] = [_as_member(c, f"{key}:0")]
                if files_record is not None:
                    members.append(files_record)
                _add_group(groups, key, members)

        elif cfg.mode == GroupingMode.SPLIT_BY_FILE:
            _split_by_file(groups, selector, candidates)

        else:  # pragma: no cover - MappingConfig.validate() guards the enum
            raise ValueError(f"Unsupported grouping mode: {cfg.mode!r}")

    out = {k: v for k, v in groups.items() if v}
    logger.debug(
        "Mapped %d artifacts into %d groups (mode=%s, grouping_key=%s)",
        len(items),
        len(out),
        cfg.mode.value,
        cfg.grouping_key is not None,
    )
    return out


def _bucket_candidates(artifacts: list[Artifact], cfg: MappingConfig) -> dict[str, list[_Candidate]]:
    buckets: dict[str, list[_Candidate]] = {}
    for artifact in artifacts:
        if cfg.grouping_key is None:
            pairs = [("", artifact.json_content)]
        else:
            pairs = expand_by_grouping_key(artifact.json_content, cfg.grouping_key)

        for selector, sliced in pairs:
            buckets.setdefault(selector, []).append(
                _Candidate(
                    selector=selector,
                    json_content=sliced,
                    source=artifact,
                    is_whole=sliced is artifact.json_content,
                )
            )
    return buckets


def _split_by_file(groups: dict[str, list[GroupMember]], selector: str, candidates: list[_Candidate]) -> None:
    claimed: set[str] = set()
    for c in candidates:
        if not c.source.pages:
            # Page-less artifacts keep their own group so they are not lost.
            key = _join_key(selector, c.source.artifact_id)
            _add_group(groups, key, [_as_member(c, f"{key}:0")])
            continue

        for page in c.source.pages:
            if page.file_id in claimed:
                continue
            claimed.add(page.file_id)
            key = _join_key(selector, page.file_id)
            page_record = SyntheticRecord(
                name=page.filename or page.file_id,
                kind=RecordKind.PAGE,
                pages=(page,),
                source_artifact_ids=(c.source.artifact_id,),
            )
            _add_group(groups, key, [_as_member(c, f"{key}:0"), page_record])


def _merged_record(key: str, candidates: list[_Candidate]) -> SyntheticRecord:
    sources = [c.source for c in candidates]
    texts = [c.source.text_content for c in candidates if c.source.text_content]
    return SyntheticRecord(
        name=f"{key}:merged",
        kind=RecordKind.MERGED,
        # Page-only artifacts carry no JSON and merge as an empty object.
        json_content=merge_json_documents({} if c.json_content is None else c.json_content for c in candidates),
        pages=union_pages(sources),
        text_content=("\n\n".join(texts) if texts else None),
        source_artifact_ids=_unique_ids(sources),
    )


def _as_member(candidate: _Candidate, name: str) -> GroupMember:
    if candidate.is_whole:
        return candidate.source
    return SyntheticRecord(
        name=name,
        kind=RecordKind.SLICE,
        json_content=candidate.json_content,
        pages=candidate.source.pages,
        text_content=candidate.source.text_content,
        source_artifact_ids=(candidate.source.artifact_id,),
    )


def _add_group(groups: dict[str, list[GroupMember]], key: str, members: list[GroupMember]) -> None:
    final_key = key
    suffix = 2
    while final_key in groups:
        final_key = f"{key}:{suffix}"
        suffix += 1
    groups[final_key] = members


def _join_key(*parts: str) -> str:
    return ":".join(p for p in parts if p)


def _unique_ids(artifacts: Iterable[Artifact]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(a.artifact_id for a in artifacts))
