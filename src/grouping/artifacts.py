from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from contracts.artifacts import GroupMember, member_to_dict


def group_mapping_to_dict(groups: dict[str, list[GroupMember]], *, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "groups": [{"key": key, "members": [member_to_dict(m) for m in members]} for key, members in groups.items()],
        "meta": dict(meta or {}),
    }


def serialize_group_mapping(groups: dict[str, list[GroupMember]], *, meta: dict[str, Any] | None = None) -> str:
    payload: dict[str, Any] = group_mapping_to_dict(groups, meta=meta)
    return (
        json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"), indent=2)
        + "\n"
    )


def write_group_mapping_json(*, groups: dict[str, list[GroupMember]], out_file: Path, meta: dict[str, Any] | None = None) -> None:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(serialize_group_mapping(groups, meta=meta), encoding="utf-8")
