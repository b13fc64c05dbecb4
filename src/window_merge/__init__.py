"""
Windowed merge.

Overlapping page windows are classified independently upstream; this package
builds those windows and folds the per-window group assignments back into
one canonical, page-ordered partition, then flags near-duplicate group names.
"""

from .config import BlankPageHandling, ConflictRule, DuplicateDetectionConfig, WindowMergeConfig
from .duplicates import identify_duplicate_candidates, prepare_duplicate_for_resolution, similarity_score
from .reconciler import identify_conflicting_files, merge_window_results
from .validation import validate_no_duplicate_pages, validate_window_assignments
from .windows import build_windows

__all__ = [
    "BlankPageHandling",
    "ConflictRule",
    "DuplicateDetectionConfig",
    "WindowMergeConfig",
    "build_windows",
    "merge_window_results",
    "identify_conflicting_files",
    "validate_no_duplicate_pages",
    "validate_window_assignments",
    "identify_duplicate_candidates",
    "prepare_duplicate_for_resolution",
    "similarity_score",
]
