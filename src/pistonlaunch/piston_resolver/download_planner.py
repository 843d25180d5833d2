"""
Download planning for a resolved version.

Turns a version descriptor and its asset index into one download plan per
artifact, and tracks the state of each plan while it is executed.
"""

import os
import pathlib
import threading
from typing import Dict, List, Optional

from pistonlaunch.launch_exceptions import ManifestParseError, PistonLaunchException
from pistonlaunch.launch_settings import LaunchSettings
from pistonlaunch.piston_models.library import Library
from pistonlaunch.piston_models.rule import EMPTY_FEATURES, Platform
from pistonlaunch.piston_models.version import (
    RESOURCES_URL,
    FetchedAssetIndex,
    FetchedVersion,
)


class DownloadStatus:
    """Enumeration of download statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class ArtifactKind:
    """Enumeration of artifact kinds."""

    CLIENT = "client"
    LIBRARY = "library"
    LOGGING_CONFIG = "logging_config"
    ASSET_OBJECT = "asset_object"


class DownloadPlan:
    """
    A plan to download a specific artifact.

    Captures all information needed to fetch and verify it.
    """

    def __init__(
        self,
        artifact_key: str,
        kind: str,
        url: str,
        destination_path: pathlib.Path,
        sha1: Optional[str] = None,
        status: str = DownloadStatus.PENDING,
    ):
        """
        Initialize a download plan.

        Args:
            artifact_key: Unique key for the artifact
            kind: One of the ArtifactKind values
            url: URL to download from
            destination_path: Where the artifact is materialized
            sha1: Expected digest, if published
            status: Current download status
        """
        self.artifact_key = artifact_key
        self.kind = kind
        self.url = url
        self.destination_path = destination_path
        self.sha1 = sha1
        self.status = status
        self.error: Optional[PistonLaunchException] = None

    def __repr__(self) -> str:
        return (
            f"DownloadPlan(key={self.artifact_key}, "
            f"status={self.status}, url={self.url})"
        )


class ArtifactState:
    """
    Current state of an artifact.

    Tracks whether an artifact has been downloaded and where it's located.
    """

    def __init__(
        self,
        artifact_key: str,
        download_status: str,
        downloaded_path: Optional[pathlib.Path] = None,
        error_message: Optional[str] = None,
    ):
        self.artifact_key = artifact_key
        self.download_status = download_status
        self.downloaded_path = downloaded_path
        self.error_message = error_message

    def is_downloaded(self) -> bool:
        """Check if the artifact has been successfully downloaded."""
        return self.download_status == DownloadStatus.COMPLETED

    def __repr__(self) -> str:
        return (
            f"ArtifactState(key={self.artifact_key}, "
            f"status={self.download_status}, path={self.downloaded_path})"
        )


class DownloadPlanner:
    """
    Decides which artifacts of a version are downloaded and where.

    Libraries are gated under the empty feature set: what gets installed does
    not depend on the flags of any particular launch session.
    """

    def __init__(
        self,
        fetched_version: FetchedVersion,
        asset_index: FetchedAssetIndex,
        install_root: str,
        resources_url: str = RESOURCES_URL,
        platform: Optional[Platform] = None,
    ):
        """
        Initialize the download planner.

        Args:
            fetched_version: The resolved version descriptor
            asset_index: The resolved asset index
            install_root: Base directory for every artifact
            resources_url: Base URL of the content-addressed asset store
            platform: Platform to gate libraries on, the host by default
        """
        self.fetched_version = fetched_version
        self.asset_index = asset_index
        self.install_root = install_root
        self.resources_url = resources_url.rstrip("/")
        self.platform = platform
        self.download_plans: Dict[str, DownloadPlan] = {}
        self.artifact_states: Dict[str, ArtifactState] = {}
        self._lock = threading.Lock()

    def create_download_plan(self) -> None:
        """
        Create download plans for the client jar, the allowed libraries, the
        logging configuration and every asset object.

        Two artifacts mapping to the same destination are planned once.
        """
        self.download_plans = {}
        seen_destinations = set()

        for plan in self._iter_plans():
            if plan.destination_path in seen_destinations:
                continue
            seen_destinations.add(plan.destination_path)
            self.download_plans[plan.artifact_key] = plan

    def _iter_plans(self):
        version = self.fetched_version
        client = version.downloads.client

        yield DownloadPlan(
            artifact_key=ArtifactKind.CLIENT,
            kind=ArtifactKind.CLIENT,
            url=client.url,
            destination_path=self.get_client_jar_path(),
            sha1=client.sha1,
        )

        for library in self.get_allowed_libraries():
            artifact = library.get_artifact()
            yield DownloadPlan(
                artifact_key=f"{ArtifactKind.LIBRARY}:{artifact.path}",
                kind=ArtifactKind.LIBRARY,
                url=artifact.url,
                destination_path=self._get_library_path(library),
                sha1=artifact.sha1,
            )

        logging_config_path = self.get_logging_config_path()
        if logging_config_path is not None:
            logging_file = version.logging.client.file
            yield DownloadPlan(
                artifact_key=f"{ArtifactKind.LOGGING_CONFIG}:{logging_file.id}",
                kind=ArtifactKind.LOGGING_CONFIG,
                url=logging_file.url,
                destination_path=logging_config_path,
                sha1=logging_file.sha1,
            )

        objects_dir = LaunchSettings.get_assets_directory(self.install_root) / "objects"
        for asset in self.asset_index.objects.values():
            relative_path = asset.relative_path()
            yield DownloadPlan(
                artifact_key=f"{ArtifactKind.ASSET_OBJECT}:{asset.hash}",
                kind=ArtifactKind.ASSET_OBJECT,
                url=f"{self.resources_url}/{relative_path}",
                destination_path=self._get_contained_path(objects_dir, relative_path),
                sha1=asset.hash,
            )

    def get_allowed_libraries(self) -> List[Library]:
        """
        Libraries whose rules allow them under the empty feature set and which
        declare a downloadable artifact.
        """
        return [
            library
            for library in self.fetched_version.libraries
            if library.get_artifact() is not None
            and library.is_allowed(EMPTY_FEATURES, self.platform)
        ]

    def get_client_jar_path(self) -> pathlib.Path:
        version_id = self.fetched_version.id
        versions_dir = pathlib.Path(self.install_root, LaunchSettings.VERSIONS_DIRECTORY)
        return self._get_contained_path(versions_dir, f"{version_id}/{version_id}.jar")

    def _get_contained_path(self, base: pathlib.Path, relative_path: str) -> pathlib.Path:
        """
        Join a path taken from a document onto `base`.

        Raises:
            ManifestParseError: If the result would land outside `base`
        """
        path = base / relative_path
        root = os.path.abspath(base)
        resolved = os.path.abspath(path)
        if resolved == root or os.path.commonpath([root, resolved]) != root:
            raise ManifestParseError(
                self.fetched_version.id, f"path {relative_path!r} escapes {base}"
            )
        return path

    def _get_library_path(self, library: Library) -> pathlib.Path:
        return self._get_contained_path(
            LaunchSettings.get_libraries_directory(self.install_root),
            library.get_artifact().path,
        )

    def get_library_paths(self) -> List[pathlib.Path]:
        """
        Installed library jars in descriptor order. Libraries sharing an
        artifact path appear once.
        """
        paths = [self._get_library_path(library) for library in self.get_allowed_libraries()]
        return list(dict.fromkeys(paths))

    def get_logging_config_path(self) -> Optional[pathlib.Path]:
        logging_config = self.fetched_version.logging
        if logging_config is None or logging_config.client is None:
            return None
        return self._get_contained_path(
            LaunchSettings.get_assets_directory(self.install_root) / "log_configs",
            logging_config.client.file.id,
        )

    def get_download_plans(self) -> Dict[str, DownloadPlan]:
        """
        Get all download plans.

        Returns:
            Dictionary mapping artifact keys to download plans
        """
        return self.download_plans

    def get_pending_downloads(self) -> List[DownloadPlan]:
        """
        Get all pending downloads.

        Returns:
            List of DownloadPlan objects with PENDING status
        """
        return [p for p in self.download_plans.values() if p.status == DownloadStatus.PENDING]

    def mark_download_completed(
        self,
        plan: DownloadPlan,
        success: bool = True,
        error: Optional[PistonLaunchException] = None,
    ) -> None:
        """
        Mark a download plan as completed or failed.

        Args:
            plan: The download plan to mark
            success: Whether the download was successful
            error: The error that failed the download
        """
        with self._lock:
            plan.status = DownloadStatus.COMPLETED if success else DownloadStatus.FAILED
            plan.error = None if success else error

            state = ArtifactState(
                artifact_key=plan.artifact_key,
                download_status=plan.status,
                downloaded_path=plan.destination_path if success else None,
                error_message=None if success or error is None else error.message,
            )
            self.artifact_states[plan.artifact_key] = state

    def get_artifact_states(self) -> Dict[str, ArtifactState]:
        """
        Get the states of all artifacts.

        Returns:
            Dictionary mapping artifact keys to ArtifactState objects
        """
        with self._lock:
            return dict(self.artifact_states)

    def get_artifact_state(self, artifact_key: str) -> Optional[ArtifactState]:
        with self._lock:
            return self.artifact_states.get(artifact_key)
