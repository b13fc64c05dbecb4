"""
Canonical data contracts shared by artifact grouping and window merging.

Stage code should consume/produce these contract objects (not ad-hoc dicts).
"""

from .artifacts import Artifact, GroupMember, Page, RecordKind, SyntheticRecord, member_to_dict
from .errors import DuplicatePageError, GroupingKeyError, MergeWarning
from .grouping_key import GroupingKeyDescriptor
from .merge import BlankPageReview, MergeResult, empty_merge_result
from .windows import (
    AssignmentVote,
    ConfidenceSummary,
    DuplicateCandidate,
    FileAssignment,
    MergedGroup,
    PageAssignment,
    Window,
    WindowFile,
    WindowResult,
)

__all__ = [
    "Page",
    "Artifact",
    "RecordKind",
    "SyntheticRecord",
    "GroupMember",
    "member_to_dict",
    "MergeWarning",
    "GroupingKeyError",
    "DuplicatePageError",
    "GroupingKeyDescriptor",
    "WindowFile",
    "Window",
    "PageAssignment",
    "WindowResult",
    "AssignmentVote",
    "FileAssignment",
    "ConfidenceSummary",
    "MergedGroup",
    "DuplicateCandidate",
    "BlankPageReview",
    "MergeResult",
    "empty_merge_result",
]
