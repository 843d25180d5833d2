"""
Configuration parameters for pistonlaunch, loaded from a `launcher.toml` file.
"""

import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

try:
    import tomllib
except ModuleNotFoundError:
    # Python < 3.11
    import tomli as tomllib

from pydantic import ValidationError

from pistonlaunch.launch_exceptions import ConfigurationError
from pistonlaunch.launch_settings import LaunchSettings
from pistonlaunch.piston_models.rule import Features
from pistonlaunch.piston_models.version import RESOURCES_URL, VERSION_MANIFEST_URL

LAUNCHER_TOML_SCHEMA = """
# Configuration for pistonlaunch

[launcher]
# Directory holding versions, libraries and assets (defaults to ~/.pistonlaunch)
# install_root = "/path/to/install/root"

# Version manifest and asset store endpoints
# manifest_url = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"
# resources_url = "https://resources.download.minecraft.net"

# Number of concurrent downloads
max_workers = 8

# Per-request timeout in seconds
request_timeout = 30.0

# Java runtime used to launch the game
java_executable = "java"

# Identity reported to the game
launcher_name = "pistonlaunch"
launcher_version = "0.1.0"

# Default feature flags of a launch session (optional)
[launcher.features]
# is_demo_user = false
# has_custom_resolution = false
"""


@dataclass
class LauncherConfig:
    """
    Configuration parameters
    """

    install_root: str = field(default_factory=LaunchSettings.get_install_directory)
    manifest_url: str = VERSION_MANIFEST_URL
    resources_url: str = RESOURCES_URL
    max_workers: int = 8
    request_timeout: float = 30.0
    java_executable: str = "java"
    launcher_name: str = "pistonlaunch"
    launcher_version: str = "0.1.0"
    features: Features = field(default_factory=Features)

    def validate(self) -> Tuple[bool, Optional[str]]:
        """
        Validate the configuration.

        Returns:
            Tuple of (is_valid, error_message)
        """
        for name in (
            "install_root",
            "manifest_url",
            "resources_url",
            "java_executable",
            "launcher_name",
            "launcher_version",
        ):
            value = getattr(self, name)
            if not isinstance(value, str):
                return False, f"{name} must be a string, got {value!r}"

        if not self.install_root:
            return False, "install_root must not be empty"

        if (
            not isinstance(self.max_workers, int)
            or isinstance(self.max_workers, bool)
            or self.max_workers < 1
        ):
            return False, f"max_workers must be a positive integer, got {self.max_workers!r}"

        if (
            not isinstance(self.request_timeout, (int, float))
            or isinstance(self.request_timeout, bool)
            or self.request_timeout <= 0
        ):
            return False, f"request_timeout must be a positive number, got {self.request_timeout!r}"

        for name in ("manifest_url", "resources_url"):
            url = getattr(self, name)
            if not url.startswith(("http://", "https://")):
                return False, f"{name} must be an http(s) URL, got {url!r}"

        return True, None

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "LauncherConfig":
        """
        Create a LauncherConfig from a dictionary (loaded from TOML).

        Args:
            config_dict: Dictionary with a `launcher` section

        Returns:
            LauncherConfig instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        section = dict(config_dict.get("launcher", {}))

        features_dict = section.pop("features", {})
        if not isinstance(features_dict, dict):
            raise ConfigurationError("'features' must be a table")
        try:
            features = Features(**features_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid features: {e}") from e

        known = {name for name in cls.__dataclass_fields__ if name != "features"}
        unknown = set(section) - known
        if unknown:
            raise ConfigurationError(f"Unknown launcher settings: {sorted(unknown)}")

        if isinstance(section.get("install_root"), str):
            section["install_root"] = os.path.expanduser(section["install_root"])

        config = cls(features=features, **section)

        is_valid, error_msg = config.validate()
        if not is_valid:
            raise ConfigurationError(error_msg)

        return config

    @classmethod
    def from_toml(cls, path: str) -> "LauncherConfig":
        """
        Load a LauncherConfig from a `launcher.toml` file.

        Raises:
            ConfigurationError: If the file is missing, malformed or invalid
        """
        try:
            with open(path, "rb") as f:
                toml_dict = tomllib.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {path}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Failed to parse {path}: {e}") from e

        return cls.from_dict(toml_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert LauncherConfig to dictionary representation."""
        config_dict = asdict(self)
        config_dict["features"] = self.features.model_dump(exclude_none=True)
        return {"launcher": config_dict}
