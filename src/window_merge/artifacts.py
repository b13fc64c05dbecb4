from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from contracts.merge import MergeResult
from contracts.windows import Window


def _stable_dumps(payload: Any) -> str:
    return (
        json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"), indent=2)
        + "\n"
    )


def serialize_windows(windows: list[Window], *, meta: dict[str, Any] | None = None) -> str:
    payload: dict[str, Any] = {
        "windows": [w.to_dict() for w in windows],
        "meta": dict(meta or {}),
    }
    return _stable_dumps(payload)


def serialize_merge_result(result: MergeResult, *, duplicates: list[dict[str, Any]] | None = None) -> str:
    payload: dict[str, Any] = result.to_dict()
    if duplicates is not None:
        payload["duplicate_candidates"] = duplicates
    return _stable_dumps(payload)


def write_windows_json(*, windows: list[Window], out_file: Path, meta: dict[str, Any] | None = None) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(serialize_windows(windows, meta=meta), encoding="utf-8")


def write_merge_result_json(
    *, result: MergeResult, out_file: Path, duplicates: list[dict[str, Any]] | None = None
) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(serialize_merge_result(result, duplicates=duplicates), encoding="utf-8")
