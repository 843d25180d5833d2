"""
Version resolution and artifact installation.

This package handles:
1. Fetching the manifest and selecting a version
2. Fetching the version descriptor and asset index
3. Planning which artifacts are downloaded and where
4. Executing the downloads and tracking their state
"""

from .download_planner import DownloadPlanner
from .downloader import ArtifactDownloader
from .version_resolver import ResolvedVersion, VersionResolver

__all__ = ["ArtifactDownloader", "DownloadPlanner", "ResolvedVersion", "VersionResolver"]
