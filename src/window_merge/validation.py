from __future__ import annotations

from typing import Any, Iterable

from common.logger import get_logger
from contracts.errors import DuplicatePageError
from contracts.windows import MergedGroup, WindowResult

logger = get_logger(__name__)


def _page_numbers(group: Any) -> list[int]:
    if isinstance(group, MergedGroup):
        return [f.page_number for f in group.files]

    out: list[int] = []
    refs = group.get("files", group.get("file_refs"))
    if not isinstance(refs, list):
        # Reported by the window parser as WINDOW_GROUP_INVALID.
        return out
    for ref in refs:
        # Legacy refs are bare page numbers; newer refs are objects.
        if isinstance(ref, int) and not isinstance(ref, bool):
            out.append(ref)
        elif isinstance(ref, dict) and ref.get("page_number") is not None:
            try:
                out.append(int(ref["page_number"]))
            except (TypeError, ValueError):
                # Unreadable refs are reported by the window parser.
                continue
    return out


def _group_name(group: Any) -> str:
    if isinstance(group, MergedGroup):
        return group.name
    name = group.get("name", group.get("group_name"))
    return "Unknown" if name is None else str(name)


def validate_no_duplicate_pages(groups: Iterable[Any]) -> None:
    """
    Ensure each page number appears in exactly one group.

    Accepts raw `groups` payloads ({name, files | file_refs: [int | {page_number, ...}]})
    or MergedGroup objects. Raw refs carrying only a file_id cannot be mapped
    to a page without their window; use validate_window_assignments() for
    those. Raises DuplicatePageError naming both groups.
    """

    page_to_group: dict[int, str] = {}
    count = 0
    for group in groups:
        count += 1
        name = _group_name(group)
        for page_number in _page_numbers(group):
            # Listing a page twice under the same name is redundant, not conflicting.
            if page_number in page_to_group and page_to_group[page_number] != name:
                raise DuplicatePageError(
                    page_number=page_number,
                    first_group=page_to_group[page_number],
                    second_group=name,
                )
            page_to_group[page_number] = name

    logger.debug("Validation passed: no duplicate pages across %d groups", count)


def validate_window_assignments(result: WindowResult) -> None:
    """
    Ensure one window never places a page in two different groups.

    Works on parsed assignments, so every payload shape and ref spelling is
    covered. Refs by file_id are resolved to their page through the window's
    file list; refs that resolve to nothing are left to the reconciler, which
    reports them as PAGE_NOT_IN_WINDOW.
    """

    page_by_id = {f.file_id: f.page_number for f in result.window.files}
    page_to_group: dict[int, str] = {}
    for a in result.assignments:
        page_number = page_by_id.get(a.file_id) if a.file_id is not None else a.page_number
        if page_number is None:
            continue
        previous = page_to_group.get(page_number)
        if previous is not None and previous != a.group_name:
            raise DuplicatePageError(page_number=page_number, first_group=previous, second_group=a.group_name)
        page_to_group[page_number] = a.group_name
