"""
Artifact grouping.

Maps an ordered list of artifacts into named groups under one of five modes
(Concatenate, Split, SplitByFile, Overwrite, Merge), optionally fanning each
artifact out by a grouping-key descriptor first.

Deterministic: group order is first-encounter order of each key.
"""

from .config import GroupingMode, MappingConfig
from .grouping_key import expand_by_grouping_key
from .mapper import map_artifacts_to_groups

__all__ = ["GroupingMode", "MappingConfig", "expand_by_grouping_key", "map_artifacts_to_groups"]
