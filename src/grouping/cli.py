from __future__ import annotations

import argparse
import json
from pathlib import Path

from common.logger import get_logger
from contracts.artifacts import Artifact

from .artifacts import write_group_mapping_json
from .config import GroupingMode, MappingConfig
from .mapper import map_artifacts_to_groups

logger = get_logger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="artifact-grouping",
        description="Map a list of artifacts into named groups (Concatenate/Split/SplitByFile/Overwrite/Merge).",
    )
    p.add_argument(
        "--input",
        required=True,
        type=Path,
        help="JSON file holding a list of artifacts (or an object with an 'artifacts' list).",
    )
    p.add_argument("--output", required=True, type=Path, help="Path to write the group mapping JSON.")
    p.add_argument(
        "--mode",
        default=GroupingMode.CONCATENATE.value,
        choices=[m.value for m in GroupingMode],
    )
    p.add_argument(
        "--grouping-key",
        type=Path,
        default=None,
        help="Optional JSON file with a grouping key descriptor ({type, children}).",
    )
    return p


def main(argv: list[str] | None = None) -> int:
    args = _build_arg_parser().parse_args(argv)

    raw = json.loads(args.input.read_text(encoding="utf-8"))
    items = raw.get("artifacts", []) if isinstance(raw, dict) else raw
    artifacts = [Artifact.from_dict(x) for x in items]

    grouping_key = None
    if args.grouping_key is not None:
        grouping_key = json.loads(args.grouping_key.read_text(encoding="utf-8"))

    cfg = MappingConfig.build(args.mode, grouping_key)
    groups = map_artifacts_to_groups(artifacts, cfg)

    meta = {
        "mode": cfg.mode.value,
        "grouping_key": None if cfg.grouping_key is None else cfg.grouping_key.to_dict(),
        "source": str(args.input),
    }
    write_group_mapping_json(groups=groups, out_file=args.output, meta=meta)
    logger.info("Wrote %d groups to %s", len(groups), args.output)

    summary = {
        "artifacts": len(artifacts),
        "groups": len(groups),
        "members": sum(len(m) for m in groups.values()),
    }
    print(json.dumps(summary, sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
