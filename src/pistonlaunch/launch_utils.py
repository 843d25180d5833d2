"""
Host detection helpers used to build the current platform descriptor.
"""

import platform
from typing import Optional

from pistonlaunch.piston_models.rule import Architecture, OperatingSystem, Platform


class PlatformUtils:
    """
    Maps the interpreter's view of the host onto the rule vocabulary.
    """

    @staticmethod
    def get_operating_system() -> Optional[OperatingSystem]:
        system = platform.system()
        if system == "Windows":
            return OperatingSystem.WINDOWS
        if system == "Darwin":
            return OperatingSystem.OSX
        if system == "Linux":
            return OperatingSystem.LINUX
        return None

    @staticmethod
    def get_architecture() -> Optional[Architecture]:
        machine = platform.machine().lower()
        if machine in ("amd64", "x86_64"):
            return Architecture.X64
        if machine in ("arm64", "aarch64"):
            return Architecture.ARM64
        if machine in ("i386", "i686", "x86"):
            return Architecture.X86
        if machine.startswith("arm"):
            return Architecture.ARM32
        return None

    @staticmethod
    def get_current_platform() -> Platform:
        """
        Returns the platform descriptor of the running host. Unknown systems or
        machines leave the corresponding field unset.
        """
        return Platform(
            os=PlatformUtils.get_operating_system(),
            arch=PlatformUtils.get_architecture(),
            version=platform.release() or None,
        )
