"""
pistonlaunch resolves game versions from the piston-meta manifest, installs
their artifacts with SHA-1 verification and compiles their launch command.
"""

from .launch_config import LauncherConfig
from .launcher import Launcher, LaunchSession, ProcessLaunchInfo

__all__ = ["Launcher", "LauncherConfig", "LaunchSession", "ProcessLaunchInfo"]
