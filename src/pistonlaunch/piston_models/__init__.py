"""
Data models for version manifests and descriptors.

This package provides Pydantic models for the piston-meta documents together
with the rule evaluation and argument compilation that operate on them.
"""

from .rule import (
    Architecture,
    EMPTY_FEATURES,
    Features,
    OperatingSystem,
    Platform,
    Rule,
    RuleAction,
    current_platform,
    evaluate_rules,
)
from .argument import (
    Arguments,
    CompiledArguments,
    RuledArgument,
    SplitArguments,
    compile_arguments,
)
from .library import Library, LibraryDownload, LibraryDownloads
from .version import (
    AssetIndex,
    AssetObject,
    Download,
    Downloads,
    FetchedAssetIndex,
    FetchedVersion,
    LatestVersions,
    RESOURCES_URL,
    VERSION_MANIFEST_URL,
    Version,
    VersionManifest,
    VersionType,
    parse_document,
)

__all__ = [
    # Rules
    "Architecture",
    "EMPTY_FEATURES",
    "Features",
    "OperatingSystem",
    "Platform",
    "Rule",
    "RuleAction",
    "current_platform",
    "evaluate_rules",
    # Arguments
    "Arguments",
    "CompiledArguments",
    "RuledArgument",
    "SplitArguments",
    "compile_arguments",
    # Libraries
    "Library",
    "LibraryDownload",
    "LibraryDownloads",
    # Versions
    "AssetIndex",
    "AssetObject",
    "Download",
    "Downloads",
    "FetchedAssetIndex",
    "FetchedVersion",
    "LatestVersions",
    "RESOURCES_URL",
    "VERSION_MANIFEST_URL",
    "Version",
    "VersionManifest",
    "VersionType",
    "parse_document",
]
