"""
Top-level orchestration: resolve a version, install its artifacts and compile
the command line that launches it.

The Launcher owns the HTTP client and the worker pool used by every step and
closes both when it exits. Spawning the process is left to the caller, who
receives a ProcessLaunchInfo.
"""

import dataclasses
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple

import requests

from pistonlaunch.download_cache import DownloadCache, HttpClient
from pistonlaunch.launch_config import LauncherConfig
from pistonlaunch.launch_exceptions import PistonLaunchException
from pistonlaunch.launch_logger import LaunchLogger
from pistonlaunch.launch_settings import LaunchSettings
from pistonlaunch.piston_models.argument import (
    CompiledArguments,
    compile_arguments,
    substitute_placeholders,
)
from pistonlaunch.piston_models.rule import Features, Platform, current_platform
from pistonlaunch.piston_resolver import (
    ArtifactDownloader,
    DownloadPlanner,
    ResolvedVersion,
    VersionResolver,
)


@dataclasses.dataclass
class ProcessLaunchInfo:
    """
    Everything needed to spawn the game process.
    """

    # The command to launch the process, as an argument list
    cmd: List[str]

    # The environment variables to set for the process
    env: Dict[str, str] = dataclasses.field(default_factory=dict)

    # The working directory for the process
    cwd: str = os.getcwd()


@dataclasses.dataclass
class LaunchSession:
    """
    Per-launch choices. Fields left as None drop the arguments that need them.
    """

    player_name: Optional[str] = None
    uuid: Optional[str] = None
    access_token: Optional[str] = None
    xuid: Optional[str] = None
    client_id: Optional[str] = None
    user_type: Optional[str] = None
    game_directory: Optional[str] = None
    resolution: Optional[Tuple[int, int]] = None
    quick_play_path: Optional[str] = None
    quick_play_singleplayer: Optional[str] = None
    quick_play_multiplayer: Optional[str] = None
    quick_play_realms: Optional[str] = None
    features: Optional[Features] = None

    def get_features(self, default_features: Features) -> Features:
        """
        Feature flags of this session: the explicit ones, or the configured
        defaults, with the flags implied by the session's own choices set.
        """
        features = self.features if self.features is not None else default_features

        implied = {}
        if self.resolution is not None:
            implied["has_custom_resolution"] = True
        if self.quick_play_singleplayer is not None:
            implied["is_quick_play_singleplayer"] = True
        if self.quick_play_multiplayer is not None:
            implied["is_quick_play_multiplayer"] = True
        if self.quick_play_realms is not None:
            implied["is_quick_play_realms"] = True
        if self.quick_play_path is not None:
            implied["has_quick_plays_support"] = True

        if not implied:
            return features
        return features.model_copy(update=implied)


class Launcher:
    """
    Resolves, installs and prepares versions for launch.

    Example usage:
    ```python
    with Launcher(LauncherConfig.from_toml("launcher.toml")) as launcher:
        launch_info = launcher.prepare("latest-release", LaunchSession(player_name="Steve"))
        subprocess.run(launch_info.cmd, cwd=launch_info.cwd)
    ```
    """

    def __init__(
        self,
        config: LauncherConfig,
        logger: Optional[LaunchLogger] = None,
        session: Optional[requests.Session] = None,
        platform: Optional[Platform] = None,
    ):
        """
        Args:
            config: Launcher configuration
            logger: Logger for progress and error messages
            session: HTTP session to use instead of a fresh one
            platform: Platform to evaluate rules against, the host by default
        """
        self.config = config
        self.logger = logger if logger is not None else LaunchLogger()
        self.platform = platform if platform is not None else current_platform()

        self.client = HttpClient(session, timeout=config.request_timeout)
        self.cache = DownloadCache(self.client)
        self.executor = ThreadPoolExecutor(
            max_workers=config.max_workers, thread_name_prefix="pistonlaunch"
        )
        self.resolver = VersionResolver(
            self.client,
            self.cache,
            config.install_root,
            manifest_url=config.manifest_url,
        )
        self.cancel_event = threading.Event()

    def close(self) -> None:
        """Cancel outstanding downloads and release the worker pool and HTTP session."""
        self.cancel_event.set()
        self.executor.shutdown(wait=True, cancel_futures=True)
        self.client.close()

    def __enter__(self) -> "Launcher":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def resolve(self, selector: str) -> ResolvedVersion:
        """
        Resolve a version id or alias to its descriptor and asset index.
        """
        self.logger.log(f"Resolving version {selector}", logging.INFO)
        try:
            resolved = self.resolver.resolve(selector, self.cancel_event)
        except PistonLaunchException as e:
            self.logger.log(f"Failed to resolve {selector}: {e.message}", logging.ERROR)
            raise

        self.logger.log(
            f"Resolved {selector} to {resolved.version.id} "
            f"({len(resolved.fetched_version.libraries)} libraries, "
            f"{len(resolved.asset_index.objects)} assets)",
            logging.INFO,
        )
        return resolved

    def create_planner(self, resolved: ResolvedVersion) -> DownloadPlanner:
        planner = DownloadPlanner(
            resolved.fetched_version,
            resolved.asset_index,
            self.config.install_root,
            resources_url=self.config.resources_url,
            platform=self.platform,
        )
        planner.create_download_plan()
        return planner

    def install(self, resolved: ResolvedVersion) -> DownloadPlanner:
        """
        Download every artifact of a resolved version.

        Raises:
            PistonLaunchException: The error of the first artifact that failed
        """
        planner = self.create_planner(resolved)
        downloader = ArtifactDownloader(
            planner, self.cache, self.executor, self.logger, self.cancel_event
        )
        success = downloader.download_all_pending()

        summary = downloader.get_download_summary()
        self.logger.log(
            f"Download summary: {summary['completed']} completed, "
            f"{summary['failed']} failed, {summary['pending']} pending",
            logging.INFO,
        )

        if not success:
            self.logger.log(
                f"Some artifacts of {resolved.version.id} failed to download. Check logs for details.",
                logging.ERROR,
            )
            error = downloader.get_first_error()
            if error is not None:
                raise error
            raise PistonLaunchException(f"Failed to install {resolved.version.id}")

        return planner

    def cancel(self) -> None:
        """
        Abort the resolution or installation in progress. Fetches that have not
        completed fail with DownloadCancelledError, and so does every later
        resolve or install on this launcher.
        """
        self.logger.log("Cancelling downloads", logging.WARNING)
        self.cancel_event.set()

    def get_classpath(self, planner: DownloadPlanner) -> str:
        entries = [str(path) for path in planner.get_library_paths()]
        entries.append(str(planner.get_client_jar_path()))
        return os.pathsep.join(entries)

    def build_placeholders(
        self,
        resolved: ResolvedVersion,
        planner: DownloadPlanner,
        session: LaunchSession,
    ) -> Dict[str, str]:
        """
        Build the placeholder table for one launch. Session values that are
        None are left out.
        """
        fetched_version = resolved.fetched_version
        install_root = self.config.install_root
        assets_root = str(LaunchSettings.get_assets_directory(install_root))

        placeholders = {
            "version_name": fetched_version.id,
            "version_type": fetched_version.version_type.value,
            "assets_index_name": fetched_version.asset_index.id,
            "assets_root": assets_root,
            "game_assets": assets_root,
            "game_directory": session.game_directory or install_root,
            "natives_directory": str(
                LaunchSettings.get_natives_directory(install_root, fetched_version.id)
            ),
            "library_directory": str(LaunchSettings.get_libraries_directory(install_root)),
            "classpath": self.get_classpath(planner),
            "classpath_separator": os.pathsep,
            "launcher_name": self.config.launcher_name,
            "launcher_version": self.config.launcher_version,
        }

        optional = {
            "auth_player_name": session.player_name,
            "auth_uuid": session.uuid,
            "auth_access_token": session.access_token,
            "auth_xuid": session.xuid,
            "clientid": session.client_id,
            "user_type": session.user_type,
            "quickPlayPath": session.quick_play_path,
            "quickPlaySingleplayer": session.quick_play_singleplayer,
            "quickPlayMultiplayer": session.quick_play_multiplayer,
            "quickPlayRealms": session.quick_play_realms,
        }
        if session.resolution is not None:
            width, height = session.resolution
            optional["resolution_width"] = str(width)
            optional["resolution_height"] = str(height)

        placeholders.update({key: value for key, value in optional.items() if value is not None})
        return placeholders

    def compile_arguments(
        self,
        resolved: ResolvedVersion,
        planner: DownloadPlanner,
        session: LaunchSession,
    ) -> CompiledArguments:
        """
        Compile the argument template of a resolved version for one session.

        Raises:
            UnsupportedArgumentsError: For versions using the legacy argument string
        """
        fetched_version = resolved.fetched_version
        placeholders = self.build_placeholders(resolved, planner, session)

        try:
            compiled = compile_arguments(
                fetched_version.arguments,
                placeholders.get,
                session.get_features(self.config.features),
                self.platform,
                version_id=fetched_version.id,
            )
        except PistonLaunchException as e:
            self.logger.log(e.message, logging.ERROR)
            raise

        logging_config_path = planner.get_logging_config_path()
        if logging_config_path is not None:
            logging_argument = substitute_placeholders(
                fetched_version.logging.client.argument,
                {"path": str(logging_config_path)}.get,
            )
            if logging_argument is not None:
                compiled.jvm.append(logging_argument)

        return compiled

    def build_launch_info(
        self,
        resolved: ResolvedVersion,
        planner: DownloadPlanner,
        session: LaunchSession,
    ) -> ProcessLaunchInfo:
        compiled = self.compile_arguments(resolved, planner, session)
        cmd = [
            self.config.java_executable,
            *compiled.jvm,
            resolved.fetched_version.main_class,
            *compiled.game,
        ]
        return ProcessLaunchInfo(
            cmd=cmd,
            env={},
            cwd=session.game_directory or self.config.install_root,
        )

    def prepare(self, selector: str, session: Optional[LaunchSession] = None) -> ProcessLaunchInfo:
        """
        Resolve, install and compile in one step.
        """
        session = session if session is not None else LaunchSession()
        resolved = self.resolve(selector)
        planner = self.install(resolved)
        launch_info = self.build_launch_info(resolved, planner, session)
        self.logger.log(
            f"Prepared {resolved.version.id} with {len(launch_info.cmd)} command line tokens",
            logging.INFO,
        )
        return launch_info
