from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from common.logger import get_logger
from contracts.artifacts import Artifact
from contracts.errors import DuplicatePageError

from .artifacts import write_merge_result_json, write_windows_json
from .config import (
    BlankPageHandling,
    ConflictRule,
    DuplicateDetectionConfig,
    WindowMergeConfig,
)
from .duplicates import identify_duplicate_candidates, prepare_duplicate_for_resolution
from .reconciler import identify_conflicting_files, merge_window_results
from .windows import build_windows, file_list_from_artifacts

logger = get_logger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="window-merge",
        description="Build overlapping page windows and reconcile per-window group assignments.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    w = sub.add_parser("windows", help="Slice an ordered file list into overlapping windows.")
    w.add_argument(
        "--input",
        required=True,
        type=Path,
        help="JSON list of files ({file_id, page_number} or bare ids), or an object with 'files' or 'artifacts'.",
    )
    w.add_argument("--output", required=True, type=Path, help="Path to write the windows JSON.")
    w.add_argument("--window-size", type=int, default=WindowMergeConfig().window_size)

    m = sub.add_parser("merge", help="Fold window results into one page-ordered group partition.")
    m.add_argument(
        "--input",
        required=True,
        type=Path,
        help="JSON list of window results, or an object with a 'windows' list.",
    )
    m.add_argument("--output", required=True, type=Path, help="Path to write the merge result JSON.")
    m.add_argument(
        "--conflict-rule",
        default=ConflictRule.LAST_WRITER.value,
        choices=[r.value for r in ConflictRule],
    )
    m.add_argument(
        "--blank-page-handling",
        default=BlankPageHandling.KEEP.value,
        choices=[b.value for b in BlankPageHandling],
    )
    m.add_argument(
        "--similarity-threshold",
        type=float,
        default=DuplicateDetectionConfig().similarity_threshold,
        help="Minimum name similarity (0..1) for duplicate candidates.",
    )
    m.add_argument(
        "--duplicates",
        action="store_true",
        help="Also detect near-duplicate group names and include review payloads.",
    )
    return p


def _load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _run_windows(args: argparse.Namespace) -> int:
    raw = _load_json(args.input)
    if isinstance(raw, dict) and isinstance(raw.get("artifacts"), list):
        files: list[Any] = file_list_from_artifacts(Artifact.from_dict(x) for x in raw["artifacts"])
    elif isinstance(raw, dict):
        files = list(raw.get("files") or [])
    else:
        files = list(raw)

    windows = build_windows(files, args.window_size)
    write_windows_json(
        windows=windows,
        out_file=args.output,
        meta={"window_size": args.window_size, "files": len(files), "source": str(args.input)},
    )
    logger.info("Wrote %d windows to %s", len(windows), args.output)

    print(json.dumps({"files": len(files), "windows": len(windows)}, sort_keys=True, separators=(",", ":")))
    return 0


def _run_merge(args: argparse.Namespace) -> int:
    raw = _load_json(args.input)
    window_results = raw.get("windows", []) if isinstance(raw, dict) else raw

    cfg = WindowMergeConfig(
        conflict_rule=ConflictRule(args.conflict_rule),
        blank_page_handling=BlankPageHandling(args.blank_page_handling),
    )
    try:
        result = merge_window_results(window_results, cfg)
    except DuplicatePageError as e:
        logger.error("%s", e)
        print(json.dumps({"ok": False, "error": e.to_warning().to_dict()}, sort_keys=True, separators=(",", ":")))
        return 1

    duplicates: list[dict[str, Any]] | None = None
    if args.duplicates:
        dup_cfg = DuplicateDetectionConfig(similarity_threshold=args.similarity_threshold)
        duplicates = []
        for candidate in identify_duplicate_candidates(result.groups, dup_cfg):
            prepared = prepare_duplicate_for_resolution(candidate, result.groups, result.file_meta, dup_cfg)
            duplicates.append(candidate.to_dict() if prepared is None else prepared)

    write_merge_result_json(result=result, out_file=args.output, duplicates=duplicates)
    logger.info("Wrote %d groups to %s", len(result.groups), args.output)

    summary = {
        "ok": result.ok,
        "groups": len(result.groups),
        "files": len(result.file_to_group),
        "warnings": len(result.warnings),
        "conflicting_files": len(identify_conflicting_files(result, cfg.low_confidence_threshold)),
        "unresolved_blank_files": len(result.unresolved_blank_files),
    }
    if duplicates is not None:
        summary["duplicate_candidates"] = len(duplicates)
    print(json.dumps(summary, sort_keys=True, separators=(",", ":")))
    return 0 if result.ok else 2


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    if args.command == "windows":
        return _run_windows(args)
    return _run_merge(args)


if __name__ == "__main__":
    raise SystemExit(main())
