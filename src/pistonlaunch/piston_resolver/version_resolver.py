"""
Resolves a version selector to its descriptor and asset index.
"""

import dataclasses
import pathlib
import threading
from typing import Optional

from pistonlaunch.download_cache import DownloadCache, HttpClient
from pistonlaunch.launch_exceptions import VersionNotFoundError
from pistonlaunch.launch_settings import LaunchSettings
from pistonlaunch.piston_models.version import (
    VERSION_MANIFEST_URL,
    FetchedAssetIndex,
    FetchedVersion,
    Version,
    VersionManifest,
    parse_document,
)

LATEST_RELEASE_ALIASES = ("latest-release", "release", "latest")
LATEST_SNAPSHOT_ALIASES = ("latest-snapshot", "snapshot")


@dataclasses.dataclass
class ResolvedVersion:
    """
    Everything known about a version once its documents have been fetched.
    """

    version: Version
    fetched_version: FetchedVersion
    asset_index: FetchedAssetIndex


class VersionResolver:
    """
    Fetches and parses the manifest, the version descriptor and the asset index.

    The descriptor and the asset index go through the download cache and are
    verified against the digests published one level up. The manifest itself
    changes over time and is always fetched fresh.
    """

    def __init__(
        self,
        client: HttpClient,
        cache: DownloadCache,
        install_root: str,
        manifest_url: str = VERSION_MANIFEST_URL,
    ):
        self.client = client
        self.cache = cache
        self.install_root = install_root
        self.manifest_url = manifest_url

    def fetch_manifest(self, cancel_event: Optional[threading.Event] = None) -> VersionManifest:
        data = self.client.download(self.manifest_url, cancel_event=cancel_event)
        return parse_document(VersionManifest, data, self.manifest_url)

    @staticmethod
    def find_version(manifest: VersionManifest, selector: str) -> Version:
        """
        Find a manifest entry by id or by one of the latest aliases.

        Args:
            manifest: The parsed version manifest
            selector: A version id, "latest-release"/"release"/"latest" or
                "latest-snapshot"/"snapshot"

        Raises:
            VersionNotFoundError: If nothing in the manifest matches
        """
        version_id = selector
        if selector in LATEST_RELEASE_ALIASES:
            version_id = manifest.latest.release
        elif selector in LATEST_SNAPSHOT_ALIASES:
            version_id = manifest.latest.snapshot

        # A literal id wins over an alias of the same spelling
        version = manifest.get_version(selector) or manifest.get_version(version_id)
        if version is None:
            raise VersionNotFoundError(selector)
        return version

    def get_descriptor_path(self, version_id: str) -> pathlib.Path:
        return LaunchSettings.get_version_directory(self.install_root, version_id) / f"{version_id}.json"

    def get_asset_index_path(self, asset_index_id: str) -> pathlib.Path:
        return LaunchSettings.get_assets_directory(self.install_root) / "indexes" / f"{asset_index_id}.json"

    def fetch_version(
        self, version: Version, cancel_event: Optional[threading.Event] = None
    ) -> FetchedVersion:
        data = self.cache.fetch(
            version.url, self.get_descriptor_path(version.id), version.sha1, cancel_event
        )
        return parse_document(FetchedVersion, data, version.url)

    def fetch_asset_index(
        self, fetched_version: FetchedVersion, cancel_event: Optional[threading.Event] = None
    ) -> FetchedAssetIndex:
        asset_index = fetched_version.asset_index
        data = self.cache.fetch(
            asset_index.url, self.get_asset_index_path(asset_index.id), asset_index.sha1, cancel_event
        )
        return parse_document(FetchedAssetIndex, data, asset_index.url)

    def resolve(
        self, selector: str, cancel_event: Optional[threading.Event] = None
    ) -> ResolvedVersion:
        """
        Resolve `selector` against a freshly fetched manifest.

        Raises:
            DownloadCancelledError: If `cancel_event` is set before a fetch completes
        """
        manifest = self.fetch_manifest(cancel_event)
        version = self.find_version(manifest, selector)
        fetched_version = self.fetch_version(version, cancel_event)
        asset_index = self.fetch_asset_index(fetched_version, cancel_event)
        return ResolvedVersion(
            version=version,
            fetched_version=fetched_version,
            asset_index=asset_index,
        )
