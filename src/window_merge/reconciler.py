from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable

from common.logger import get_logger
from contracts.errors import MergeWarning
from contracts.merge import MergeResult, empty_merge_result
from contracts.windows import (
    AssignmentVote,
    ConfidenceSummary,
    FileAssignment,
    MergedGroup,
    WindowFile,
    WindowResult,
)

from .blank_pages import resolve_blank_pages
from .config import ConflictRule, WindowMergeConfig
from .parsing import parse_window_result
from .validation import validate_no_duplicate_pages, validate_window_assignments

logger = get_logger(__name__)

_MERGE_ALGORITHM = "ordered_window_fold"
_MERGE_VERSION = "window_merge_v1"


@dataclass(slots=True)
class _FileState:
    # Mutable, but only ever lives inside one merge_window_results() call.
    file_id: str
    page_number: int
    group_name: str
    description: str
    confidence: float
    explanation: str
    belongs_to_previous: float | None = None
    votes: list[AssignmentVote] = field(default_factory=list)


def _stable_json(x: Any) -> str:
    return json.dumps(x, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _canonical_warnings(warnings: list[MergeWarning]) -> list[MergeWarning]:
    return sorted(warnings, key=lambda w: (w.code, w.message, _stable_json(w.detail)))


def _assignment_wins(rule: ConflictRule, new_confidence: float, current_confidence: float) -> bool:
    if rule == ConflictRule.LAST_WRITER:
        return True
    return new_confidence > current_confidence


def _apply_window(
    result: WindowResult,
    states: dict[str, _FileState],
    descriptions: dict[str, str],
    cfg: WindowMergeConfig,
    warnings: list[MergeWarning],
) -> None:
    window = result.window
    by_page = {f.page_number: f for f in window.files}
    by_id = {f.file_id: f for f in window.files}

    logger.debug(
        "Processing window %d: indices %d-%d, %d assignments",
        window.window_index,
        window.start_index,
        window.end_index,
        len(result.assignments),
    )

    for a in result.assignments:
        wf = by_id.get(a.file_id) if a.file_id is not None else by_page.get(a.page_number)
        if wf is None:
            detail = {"window_index": window.window_index, "page_number": a.page_number, "file_id": a.file_id}
            logger.warning("Window %d referenced a page outside the window: %s", window.window_index, detail)
            warnings.append(
                MergeWarning(
                    code="PAGE_NOT_IN_WINDOW",
                    message="Assignment references a page that is not part of its window",
                    detail=detail,
                )
            )
            continue

        confidence = cfg.default_confidence if a.confidence is None else a.confidence
        vote = AssignmentVote(
            group_name=a.group_name,
            confidence=confidence,
            explanation=a.explanation,
            window_index=window.window_index,
        )
        if a.description and a.group_name not in descriptions:
            descriptions[a.group_name] = a.description

        state = states.get(wf.file_id)
        if state is None:
            state = _FileState(
                file_id=wf.file_id,
                page_number=wf.page_number,
                group_name=a.group_name,
                description=a.description,
                confidence=confidence,
                explanation=a.explanation,
            )
            states[wf.file_id] = state
        elif _assignment_wins(cfg.conflict_rule, confidence, state.confidence):
            if state.group_name != a.group_name:
                logger.debug(
                    "File %s (page %d): %r -> %r (window %d)",
                    wf.file_id,
                    wf.page_number,
                    state.group_name,
                    a.group_name,
                    window.window_index,
                )
            state.group_name = a.group_name
            state.description = a.description
            state.confidence = confidence
            state.explanation = a.explanation

        state.votes.append(vote)
        if a.belongs_to_previous is not None:
            if state.belongs_to_previous is None or a.belongs_to_previous > state.belongs_to_previous:
                state.belongs_to_previous = a.belongs_to_previous


def _confidence_summary(values: list[float]) -> ConfidenceSummary | None:
    if not values:
        return None
    return ConfidenceSummary(avg=round(sum(values) / len(values), 2), min=min(values), max=max(values))


def _build_groups(
    file_to_group: dict[str, str], file_meta: dict[str, FileAssignment], descriptions: dict[str, str]
) -> list[MergedGroup]:
    members: dict[str, list[WindowFile]] = {}
    for file_id, name in file_to_group.items():
        members.setdefault(name, []).append(WindowFile(file_id=file_id, page_number=file_meta[file_id].page_number))

    groups: list[MergedGroup] = []
    for name, files in members.items():
        files.sort(key=lambda f: (f.page_number, f.file_id))
        groups.append(
            MergedGroup(
                name=name,
                description=descriptions.get(name, ""),
                files=files,
                confidence_summary=_confidence_summary([file_meta[f.file_id].confidence for f in files]),
            )
        )

    # Empty groups cannot arise from inverting the map; ordering follows each group's first page.
    groups.sort(key=lambda g: (g.files[0].page_number, g.name))
    return groups


def merge_window_results(
    window_results: Iterable[WindowResult | dict[str, Any]], config: WindowMergeConfig | None = None
) -> MergeResult:
    """
    Fold per-window classifications into one canonical, page-ordered partition.

    Windows are applied in ascending start order against a single
    file -> group map. Under the default LAST_WRITER rule a later window's
    assignment of a file replaces any earlier one, since later windows have
    more downstream context. Malformed windows, groups and page references are
    skipped and reported in `warnings`; a page placed in two groups by one
    window raises DuplicatePageError, whether the window arrives as a raw
    payload or as a WindowResult.
    """

    cfg = WindowMergeConfig() if config is None else config
    cfg.validate()

    warnings: list[MergeWarning] = []
    parsed: list[WindowResult] = []
    windows_in = 0
    for i, raw in enumerate(window_results):
        windows_in += 1
        if isinstance(raw, WindowResult):
            validate_window_assignments(raw)
            parsed.append(raw)
            continue
        result, parse_warnings = parse_window_result(raw, fallback_index=i, default_confidence=cfg.default_confidence)
        warnings.extend(parse_warnings)
        if result is not None:
            parsed.append(result)

    meta: dict[str, Any] = {
        "algorithm": _MERGE_ALGORITHM,
        "version": _MERGE_VERSION,
        "params": cfg.to_dict(),
        "counts": {
            "windows_in": windows_in,
            "windows_used": len(parsed),
            "windows_skipped": windows_in - len(parsed),
        },
    }

    if not parsed:
        logger.debug("No usable windows to merge (%d supplied)", windows_in)
        meta["counts"].update({"files": 0, "groups": 0, "warnings": len(warnings)})
        return empty_merge_result(meta=meta, warnings=_canonical_warnings(warnings))

    parsed.sort(key=lambda r: (r.window.start_index, r.window.window_index))

    states: dict[str, _FileState] = {}
    descriptions: dict[str, str] = {}
    for result in parsed:
        _apply_window(result, states, descriptions, cfg, warnings)

    ordered_ids = sorted(states, key=lambda f: (states[f].page_number, f))
    raw_map = {f: states[f].group_name for f in ordered_ids}
    page_numbers = {f: states[f].page_number for f in ordered_ids}
    file_to_group, blank_reviews = resolve_blank_pages(raw_map, page_numbers, cfg.blank_page_handling)

    file_meta: dict[str, FileAssignment] = {}
    for file_id in ordered_ids:
        if file_id not in file_to_group:
            continue
        s = states[file_id]
        file_meta[file_id] = FileAssignment(
            file_id=file_id,
            page_number=s.page_number,
            group_name=file_to_group[file_id],
            description=s.description,
            confidence=s.confidence,
            explanation=s.explanation,
            belongs_to_previous=s.belongs_to_previous,
            votes=list(s.votes),
        )

    groups = _build_groups(file_to_group, file_meta, descriptions)
    validate_no_duplicate_pages(groups)

    meta["counts"].update({"files": len(file_to_group), "groups": len(groups), "warnings": len(warnings)})
    for g in groups:
        logger.debug(
            "Final group %r: %d files (pages %d-%d)", g.name, len(g.files), g.files[0].page_number, g.files[-1].page_number
        )

    return MergeResult(
        groups=groups,
        file_to_group=file_to_group,
        file_meta=file_meta,
        unresolved_blank_files=blank_reviews,
        warnings=_canonical_warnings(warnings),
        meta=meta,
    )


def identify_conflicting_files(result: MergeResult, confidence_threshold: float = 3) -> list[FileAssignment]:
    """
    Low-confidence files whose windows disagreed about their group.

    A file with a single low-confidence answer is left alone (it is the only
    answer available); only files below `confidence_threshold` whose votes
    name more than one group need resolution.
    """

    out: list[FileAssignment] = []
    for assignment in result.file_meta.values():
        if assignment.confidence >= confidence_threshold:
            continue
        if len({v.group_name for v in assignment.votes}) > 1:
            out.append(assignment)
    logger.debug("Found %d low-confidence files with conflicting votes", len(out))
    return out
