"""
Artifact downloader implementation.

Executes download plans on a bounded worker pool through the download cache.
"""

import logging
import threading
from concurrent.futures import Executor, as_completed
from typing import Dict, Optional

from pistonlaunch.download_cache import DownloadCache
from pistonlaunch.launch_exceptions import DownloadCancelledError, PistonLaunchException
from pistonlaunch.launch_logger import LaunchLogger
from pistonlaunch.piston_resolver.download_planner import (
    ArtifactState,
    DownloadPlan,
    DownloadPlanner,
    DownloadStatus,
)


class ArtifactDownloader:
    """
    Downloads the artifacts of a resolved version.

    Every plan maps to a distinct destination, so plans run concurrently
    without any locking around the filesystem.
    """

    def __init__(
        self,
        planner: DownloadPlanner,
        cache: DownloadCache,
        executor: Executor,
        logger: LaunchLogger,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize the artifact downloader.

        Args:
            planner: The DownloadPlanner with download plans
            cache: Cache used to fetch every artifact
            executor: Worker pool the downloads are submitted to
            logger: Logger for progress and error messages
            cancel_event: Event shared with the caller; a private one by default
        """
        self.planner = planner
        self.cache = cache
        self.executor = executor
        self.logger = logger
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()

    def download_all_pending(self) -> bool:
        """
        Download all pending artifacts.

        Returns:
            True if all downloads succeeded, False if any failed
        """
        pending = self.planner.get_pending_downloads()

        if not pending:
            self.logger.log("No pending downloads", logging.INFO)
            return True

        self.logger.log(
            f"Starting download of {len(pending)} artifacts",
            logging.INFO,
        )

        futures = [self.executor.submit(self.download_artifact, plan) for plan in pending]

        all_succeeded = True
        for future in as_completed(futures):
            if not future.result():
                all_succeeded = False

        return all_succeeded

    def download_artifact(self, plan: DownloadPlan) -> bool:
        """
        Download a single artifact.

        Args:
            plan: The download plan to execute

        Returns:
            True if download succeeded, False otherwise
        """
        if self.cancel_event.is_set():
            self.planner.mark_download_completed(
                plan, success=False, error=DownloadCancelledError(plan.url)
            )
            return False

        try:
            self.logger.log(
                f"Downloading {plan.artifact_key} from {plan.url}",
                logging.DEBUG,
            )

            plan.status = DownloadStatus.IN_PROGRESS
            self.cache.fetch(plan.url, plan.destination_path, plan.sha1, self.cancel_event)
            self.planner.mark_download_completed(plan, success=True)

            self.logger.log(
                f"Downloaded {plan.artifact_key} to {plan.destination_path}",
                logging.DEBUG,
            )

            return True

        except PistonLaunchException as e:
            self.logger.log(
                f"Failed to download {plan.artifact_key}: {e.message}",
                logging.ERROR,
            )
            self.planner.mark_download_completed(plan, success=False, error=e)
            return False

    def cancel(self) -> None:
        """
        Stop outstanding work. Queued plans fail without starting and in-flight
        transfers abort before publishing anything.
        """
        self.cancel_event.set()

    def get_first_error(self) -> Optional[PistonLaunchException]:
        """
        Returns the error of the first failed plan, in plan order.
        """
        for plan in self.planner.get_download_plans().values():
            if plan.status == DownloadStatus.FAILED and plan.error is not None:
                return plan.error
        return None

    def get_failed_artifacts(self) -> Dict[str, ArtifactState]:
        """
        Get information about all failed downloads.

        Returns:
            Dictionary mapping artifact keys to their states
        """
        states = self.planner.get_artifact_states()
        return {
            key: state
            for key, state in states.items()
            if state.download_status == DownloadStatus.FAILED
        }

    def get_download_summary(self) -> dict:
        """
        Get a summary of download results.

        Returns:
            Dictionary with counts of successful, failed, and pending downloads
        """
        states = self.planner.get_artifact_states()
        pending = self.planner.get_pending_downloads()

        completed = sum(1 for state in states.values() if state.is_downloaded())
        failed = sum(
            1
            for state in states.values()
            if state.download_status == DownloadStatus.FAILED
        )

        return {
            "completed": completed,
            "failed": failed,
            "pending": len(pending),
            "total": completed + failed + len(pending),
        }
