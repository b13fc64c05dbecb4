from __future__ import annotations

from typing import Any, Iterable, Sequence

from common.logger import get_logger
from contracts.artifacts import Artifact
from contracts.windows import Window, WindowFile

logger = get_logger(__name__)


def coerce_window_files(items: Iterable[Any]) -> list[WindowFile]:
    """
    Normalize an ordered file list.

    Accepts WindowFile objects, {file_id, page_number} mappings, or bare ids.
    A bare int id doubles as its page number; other bare ids take their
    1-based position.
    """

    out: list[WindowFile] = []
    for i, item in enumerate(items):
        if isinstance(item, WindowFile):
            out.append(item)
        elif isinstance(item, dict):
            out.append(WindowFile.from_dict(item))
        elif isinstance(item, int) and not isinstance(item, bool):
            out.append(WindowFile(file_id=str(item), page_number=item))
        else:
            out.append(WindowFile(file_id=str(item), page_number=i + 1))
    return out


def file_list_from_artifacts(artifacts: Iterable[Artifact]) -> list[WindowFile]:
    """
    One WindowFile per page artifact, sorted by page number.

    The page number comes from the artifact's first attached page, falling
    back to the artifact's position.
    """

    files: list[WindowFile] = []
    for artifact in artifacts:
        page_number = artifact.pages[0].page_number if artifact.pages else artifact.position
        files.append(WindowFile(file_id=artifact.artifact_id, page_number=int(page_number)))

    files.sort(key=lambda f: f.page_number)
    logger.debug("Extracted %d files from artifacts", len(files))
    return files


def build_windows(ordered_files: Sequence[Any], window_size: int) -> list[Window]:
    """
    Slice an ordered file list into windows overlapping by exactly one file.

    Windows advance by `window_size - 1`, so the last file of window N is the
    first file of window N+1 and every boundary is seen from both sides.
    A trailing window is only emitted when it holds at least 2 files.

    Examples (1-based files):
    - 10 files, size 5 -> [1-5], [5-9], [9-10]
    - 6 files, size 5 -> [1-5], [5-6]
    - 4 files, size 5 -> [1-4]
    """

    files = coerce_window_files(ordered_files)
    if not files:
        logger.debug("No files to create windows from")
        return []
    if window_size < 2:
        logger.warning("Window size must be at least 2, got %d; no windows created", window_size)
        return []

    windows: list[Window] = []
    step = window_size - 1
    start = 0
    while start < len(files):
        chunk = files[start : start + window_size]
        if len(chunk) < 2:
            break
        windows.append(
            Window(
                window_index=len(windows),
                start_index=start,
                end_index=start + len(chunk) - 1,
                files=chunk,
            )
        )
        start += step

    logger.debug("Created %d overlapping windows from %d files (size=%d)", len(windows), len(files), window_size)
    return windows
