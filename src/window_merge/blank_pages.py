from __future__ import annotations

from common.logger import get_logger
from contracts.merge import BlankPageReview

from .config import BlankPageHandling

logger = get_logger(__name__)

BLANK_GROUP = ""


def _adjacent_group(ordered: list[str], index: int, file_to_group: dict[str, str], step: int) -> str | None:
    i = index + step
    while 0 <= i < len(ordered):
        name = file_to_group[ordered[i]]
        if name != BLANK_GROUP:
            return name
        i += step
    return None


def resolve_blank_pages(
    file_to_group: dict[str, str],
    page_numbers: dict[str, int],
    handling: BlankPageHandling,
) -> tuple[dict[str, str], list[BlankPageReview]]:
    """
    Apply the blank-page policy to a file -> group map (returns a new map).

    Blank pages are files whose group name is "". With JOIN_ADJACENT a blank
    page joins its neighbouring group when the previous and next non-blank
    groups agree or only one exists; when they differ it stays blank and is
    returned for review. Neighbours are read from the map as given, so the
    order in which blanks are resolved does not matter.
    """

    if handling == BlankPageHandling.KEEP:
        return dict(file_to_group), []

    if handling == BlankPageHandling.DISCARD:
        kept = {f: g for f, g in file_to_group.items() if g != BLANK_GROUP}
        dropped = len(file_to_group) - len(kept)
        if dropped:
            logger.debug("Discarded %d blank pages", dropped)
        return kept, []

    ordered = sorted(file_to_group, key=lambda f: (page_numbers[f], f))
    out = dict(file_to_group)
    reviews: list[BlankPageReview] = []

    for index, file_id in enumerate(ordered):
        if file_to_group[file_id] != BLANK_GROUP:
            continue

        prev_group = _adjacent_group(ordered, index, file_to_group, -1)
        next_group = _adjacent_group(ordered, index, file_to_group, 1)

        if prev_group is not None and next_group is not None and prev_group != next_group:
            reviews.append(
                BlankPageReview(
                    file_id=file_id,
                    page_number=page_numbers[file_id],
                    previous_group=prev_group,
                    next_group=next_group,
                )
            )
            logger.debug("Blank page %d sits between %r and %r; needs review", page_numbers[file_id], prev_group, next_group)
        elif prev_group is not None:
            out[file_id] = prev_group
        elif next_group is not None:
            out[file_id] = next_group

    logger.debug(
        "Blank page resolution: %d auto-assigned, %d need review",
        sum(1 for f in out if out[f] != file_to_group[f]),
        len(reviews),
    )
    return out, reviews
