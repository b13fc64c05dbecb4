from __future__ import annotations

from typing import Any

from common.logger import get_logger
from contracts.errors import MergeWarning
from contracts.windows import PageAssignment, Window, WindowFile, WindowResult

from .validation import validate_window_assignments

logger = get_logger(__name__)

LEGACY_EXPLANATION = "Legacy assignment (no confidence score provided)"


def _warn(warnings: list[MergeWarning], code: str, message: str, detail: dict[str, Any]) -> None:
    logger.warning("%s: %s %s", code, message, detail)
    warnings.append(MergeWarning(code=code, message=message, detail=detail))


def _window_metadata(payload: dict[str, Any]) -> tuple[dict[str, Any], Any]:
    """
    Locate window metadata: a `window` object, artifact-style `meta`, or the
    payload's own top level. Returns (metadata, raw file list).
    """

    window = payload.get("window")
    if isinstance(window, dict):
        return window, window.get("files", window.get("window_files"))

    meta = payload.get("meta")
    if isinstance(meta, dict) and ("window_files" in meta or "window_start" in meta or "start_index" in meta):
        return meta, meta.get("window_files")

    # Top level: "files" is the flat assignment list here, never window metadata.
    return payload, payload.get("window_files")


def _parse_window(payload: dict[str, Any], fallback_index: int) -> Window | None:
    meta, files_raw = _window_metadata(payload)
    start = meta.get("start_index", meta.get("window_start"))
    if start is None or not isinstance(files_raw, list) or not files_raw:
        return None

    files: list[WindowFile] = []
    for f in files_raw:
        if isinstance(f, dict) and f.get("file_id") is not None and f.get("page_number") is not None:
            files.append(WindowFile(file_id=str(f["file_id"]), page_number=int(f["page_number"])))
    if not files:
        return None

    end = meta.get("end_index", meta.get("window_end"))
    start_index = int(start)
    return Window(
        window_index=int(meta.get("window_index", fallback_index)),
        start_index=start_index,
        end_index=(start_index + len(files) - 1) if end is None else int(end),
        files=files,
    )


def _confidence(raw: Any, default: float) -> float:
    return default if raw is None else float(raw)


def _optional_float(raw: Any) -> float | None:
    return None if raw is None else float(raw)


def _parse_groups_shape(
    groups: list[Any], *, window_index: int, default_confidence: float, warnings: list[MergeWarning]
) -> list[PageAssignment]:
    out: list[PageAssignment] = []
    for gi, group in enumerate(groups):
        if not isinstance(group, dict):
            _warn(warnings, "WINDOW_GROUP_INVALID", "Group entry is not an object", {"window_index": window_index, "group_index": gi})
            continue
        name = group.get("name", group.get("group_name"))
        if name is None:
            # Empty string is a legitimate "no identifier" group; only null is malformed.
            _warn(warnings, "WINDOW_GROUP_INVALID", "Group has null name", {"window_index": window_index, "group_index": gi})
            continue
        description = str(group.get("description") or "")
        refs = group.get("files", group.get("file_refs"))
        if not isinstance(refs, list):
            _warn(warnings, "WINDOW_GROUP_INVALID", "Group has no file list", {"window_index": window_index, "group": str(name)})
            continue

        for ref in refs:
            try:
                if isinstance(ref, int) and not isinstance(ref, bool):
                    out.append(
                        PageAssignment(
                            page_number=ref,
                            group_name=str(name),
                            description=description,
                            confidence=default_confidence,
                            explanation=LEGACY_EXPLANATION,
                        )
                    )
                elif isinstance(ref, dict) and (ref.get("page_number") is not None or ref.get("file_id") is not None):
                    out.append(
                        PageAssignment(
                            page_number=(-1 if ref.get("page_number") is None else int(ref["page_number"])),
                            group_name=str(name),
                            description=description,
                            confidence=_confidence(ref.get("confidence"), default_confidence),
                            explanation=str(ref.get("explanation") or ""),
                            file_id=(None if ref.get("file_id") is None else str(ref["file_id"])),
                        )
                    )
                else:
                    raise ValueError("file reference has neither page_number nor file_id")
            except (TypeError, ValueError) as e:
                _warn(
                    warnings,
                    "WINDOW_FILE_REF_INVALID",
                    f"Skipping file reference: {e}",
                    {"window_index": window_index, "group": str(name), "ref": repr(ref)},
                )
    return out


def _parse_files_shape(
    files: list[Any], *, window_index: int, default_confidence: float, warnings: list[MergeWarning]
) -> list[PageAssignment]:
    out: list[PageAssignment] = []
    for fi, entry in enumerate(files):
        try:
            if not isinstance(entry, dict) or entry.get("page_number") is None:
                raise ValueError("entry has no page_number")
            name = entry.get("group_name")
            if name is None:
                raise ValueError("entry has null group_name")
            page_number = int(entry["page_number"])
            assignment = PageAssignment(
                page_number=page_number,
                group_name=str(name),
                description=str(entry.get("group_description") or entry.get("description") or ""),
                confidence=_confidence(entry.get("group_name_confidence", entry.get("confidence")), default_confidence),
                explanation=str(entry.get("group_explanation") or entry.get("explanation") or ""),
                belongs_to_previous=_optional_float(
                    entry.get("belongs_to_previous", entry.get("belongs_to_previous_confidence"))
                ),
            )
        except (TypeError, ValueError) as e:
            _warn(
                warnings,
                "WINDOW_FILE_REF_INVALID",
                f"Skipping file entry: {e}",
                {"window_index": window_index, "entry_index": fi},
            )
            continue

        out.append(assignment)
    return out


def parse_window_result(
    payload: Any, *, fallback_index: int = 0, default_confidence: float = 3
) -> tuple[WindowResult | None, list[MergeWarning]]:
    """
    Normalize one externally produced window classification.

    Accepts the legacy `groups` shape and the flat per-file `files` shape,
    optionally wrapped artifact-style as {json_content, meta}. Malformed
    input yields (None, warnings) instead of raising; a page placed in two
    different groups raises DuplicatePageError.
    """

    warnings: list[MergeWarning] = []
    if not isinstance(payload, dict):
        _warn(warnings, "WINDOW_UNPARSABLE", "Window result is not an object", {"window_index": fallback_index})
        return None, warnings

    content = payload.get("json_content") if isinstance(payload.get("json_content"), dict) else payload

    try:
        window = _parse_window(payload, fallback_index)
    except (TypeError, ValueError) as e:
        _warn(warnings, "WINDOW_METADATA_MISSING", f"Unreadable window metadata: {e}", {"window_index": fallback_index})
        return None, warnings
    if window is None:
        _warn(warnings, "WINDOW_METADATA_MISSING", "Window result has no usable window metadata", {"window_index": fallback_index})
        return None, warnings

    if isinstance(content.get("groups"), list):
        assignments = _parse_groups_shape(
            content["groups"], window_index=window.window_index, default_confidence=default_confidence, warnings=warnings
        )
        shape = "groups"
    elif isinstance(content.get("files"), list):
        assignments = _parse_files_shape(
            content["files"], window_index=window.window_index, default_confidence=default_confidence, warnings=warnings
        )
        shape = "files"
    else:
        _warn(warnings, "WINDOW_PAYLOAD_MISSING", "Window result has neither 'groups' nor 'files'", {"window_index": window.window_index})
        return None, warnings

    result = WindowResult(window=window, assignments=assignments, source_shape=shape)
    validate_window_assignments(result)
    return result, warnings
