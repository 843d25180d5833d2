"""
Default locations used by pistonlaunch.
"""

import os
import pathlib


class LaunchSettings:
    """
    Provides the directory layout under the install root.
    """

    VERSIONS_DIRECTORY = "versions"
    LIBRARIES_DIRECTORY = "libraries"
    ASSETS_DIRECTORY = "assets"
    NATIVES_DIRECTORY = "natives"

    @staticmethod
    def get_install_directory() -> str:
        """
        Returns the default install root, ~/.pistonlaunch
        """
        install_dir = str(pathlib.PurePath(os.path.expanduser("~"), ".pistonlaunch"))
        return install_dir

    @staticmethod
    def get_version_directory(install_root: str, version_id: str) -> pathlib.Path:
        return pathlib.Path(install_root, LaunchSettings.VERSIONS_DIRECTORY, version_id)

    @staticmethod
    def get_libraries_directory(install_root: str) -> pathlib.Path:
        return pathlib.Path(install_root, LaunchSettings.LIBRARIES_DIRECTORY)

    @staticmethod
    def get_assets_directory(install_root: str) -> pathlib.Path:
        return pathlib.Path(install_root, LaunchSettings.ASSETS_DIRECTORY)

    @staticmethod
    def get_natives_directory(install_root: str, version_id: str) -> pathlib.Path:
        return LaunchSettings.get_version_directory(install_root, version_id) / LaunchSettings.NATIVES_DIRECTORY
