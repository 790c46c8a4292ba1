"""构建步骤"""

from .build_step import BuildStep
from .metadata_step import MetadataStep
from .ignore_rules_step import IgnoreRulesStep
from .staging_step import StagingStep
from .archive_step import ArchiveStep

__all__ = [
    "BuildStep",
    "MetadataStep",
    "IgnoreRulesStep",
    "StagingStep",
    "ArchiveStep",
]
