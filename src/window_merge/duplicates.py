from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from rapidfuzz.distance import Levenshtein

from common.logger import get_logger
from contracts.windows import DuplicateCandidate, FileAssignment, MergedGroup

from .config import DuplicateDetectionConfig

logger = get_logger(__name__)

_SEPARATORS_RE = re.compile(r"[-_/]")
_PUNCT_RE = re.compile(r"[^\w\s()]")
_WS_RE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """
    Comparison form of a group name.

    "ABC Medical, LLC" and "abc  medical llc" normalize identically.
    Parentheses survive so location qualifiers can still be recognized.
    """

    s = name.casefold()
    s = _SEPARATORS_RE.sub(" ", s)
    s = _PUNCT_RE.sub("", s)
    return _WS_RE.sub(" ", s).strip()


def is_location_variant(a: str, b: str) -> bool:
    """True for normalized "name" vs "name (qualifier)" pairs."""

    a_paren = "(" in a and ")" in a
    b_paren = "(" in b and ")" in b
    if a_paren == b_paren:
        return False
    with_paren, plain = (a, b) if a_paren else (b, a)
    base = with_paren[: with_paren.index("(")].strip()
    return bool(base) and base == plain


def similarity_score(name1: str, name2: str, config: DuplicateDetectionConfig | None = None) -> float:
    """
    Banded similarity of two group names, within [0, 1].

    More shared structure never lowers the score: an exact normalized match
    is 1.0, a location qualifier scores `location_variant_score`, containment
    scores at least `containment_floor`, and anything else falls back to
    normalized Levenshtein similarity.
    """

    cfg = DuplicateDetectionConfig() if config is None else config
    a = normalize_name(name1)
    b = normalize_name(name2)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    if is_location_variant(a, b):
        return cfg.location_variant_score

    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    if shorter in longer:
        return max(cfg.containment_floor, len(shorter) / len(longer))

    return float(Levenshtein.normalized_similarity(a, b))


def _name_of(group: Any) -> str:
    if isinstance(group, MergedGroup):
        return group.name
    name = group.get("name") if isinstance(group, Mapping) else None
    return "" if name is None else str(name)


def identify_duplicate_candidates(
    groups: Iterable[Any], config: DuplicateDetectionConfig | None = None
) -> list[DuplicateCandidate]:
    """
    Flag group-name pairs that likely denote the same entity.

    Every unordered pair is compared once, in input order; names that are
    empty or whitespace-only are never compared. Pairs scoring at or above
    `similarity_threshold` are returned.
    """

    cfg = DuplicateDetectionConfig() if config is None else config
    names = [n for n in (_name_of(g) for g in groups) if n.strip()]
    logger.debug("Checking %d groups for potential duplicates", len(names))

    out: list[DuplicateCandidate] = []
    for i in range(len(names)):
        for j in range(i + 1, len(names)):
            score = similarity_score(names[i], names[j], cfg)
            if score >= cfg.similarity_threshold:
                logger.debug("Duplicate candidate: %r <-> %r (similarity %.3f)", names[i], names[j], score)
                out.append(DuplicateCandidate(group1=names[i], group2=names[j], similarity=score))

    logger.debug("Found %d duplicate candidates", len(out))
    return out


def _find_group(groups: list[Any], name: str) -> Any | None:
    for g in groups:
        if _name_of(g) == name:
            return g
    return None


def _member_ids(group: Any) -> list[str]:
    if isinstance(group, MergedGroup):
        return group.file_ids
    out: list[str] = []
    for ref in group.get("files") or []:
        if isinstance(ref, Mapping):
            if ref.get("file_id") is not None:
                out.append(str(ref["file_id"]))
        else:
            out.append(str(ref))
    return out


def _meta_field(meta: Any, key: str) -> Any:
    if isinstance(meta, FileAssignment):
        return getattr(meta, key)
    return meta.get(key)


def _sample_files(member_ids: list[str], file_meta: Mapping[str, Any], limit: int) -> list[dict[str, Any]]:
    samples: list[dict[str, Any]] = []
    for file_id in member_ids:
        if len(samples) >= limit:
            break
        meta = file_meta.get(file_id)
        if meta is None:
            continue
        samples.append(
            {
                "page_number": _meta_field(meta, "page_number"),
                "description": _meta_field(meta, "description") or _meta_field(meta, "explanation") or "",
                "confidence": _meta_field(meta, "confidence"),
            }
        )
    return samples


def _group_summary(group: Any, file_meta: Mapping[str, Any], limit: int) -> dict[str, Any]:
    if isinstance(group, MergedGroup):
        description = group.description
        confidence = None if group.confidence_summary is None else group.confidence_summary.to_dict()
    else:
        description = str(group.get("description") or "")
        confidence = group.get("confidence_summary")

    member_ids = _member_ids(group)
    return {
        "name": _name_of(group),
        "description": description,
        "file_count": len(member_ids),
        "sample_files": _sample_files(member_ids, file_meta, limit),
        "confidence": confidence,
    }


def prepare_duplicate_for_resolution(
    candidate: DuplicateCandidate,
    final_groups: Iterable[Any],
    file_meta: Mapping[str, Any],
    config: DuplicateDetectionConfig | None = None,
) -> dict[str, Any] | None:
    """
    Review payload for one duplicate candidate.

    Each side carries its true `file_count` plus at most `sample_file_limit`
    sample files. Returns None when either group is missing from
    `final_groups`.
    """

    cfg = DuplicateDetectionConfig() if config is None else config
    groups = list(final_groups)
    group1 = _find_group(groups, candidate.group1)
    group2 = _find_group(groups, candidate.group2)
    if group1 is None or group2 is None:
        logger.debug("Could not find group data for %r or %r", candidate.group1, candidate.group2)
        return None

    return {
        "group1": _group_summary(group1, file_meta, cfg.sample_file_limit),
        "group2": _group_summary(group2, file_meta, cfg.sample_file_limit),
        "similarity": candidate.similarity,
    }
