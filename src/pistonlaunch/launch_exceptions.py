"""
This file contains the exceptions raised by pistonlaunch.
"""


class PistonLaunchException(Exception):
    """
    Base exception for all pistonlaunch errors.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TransportError(PistonLaunchException):
    """
    Raised when a request fails at the network level or returns a non-success status.
    """

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to download {url}: {reason}")
        self.url = url
        self.reason = reason


class IntegrityMismatchError(PistonLaunchException):
    """
    Raised when the SHA-1 of a downloaded payload does not match the expected digest.
    """

    def __init__(self, url: str, expected: str, actual: str):
        super().__init__(f"{url} did not match expected hash of {expected}")
        self.url = url
        self.expected = expected
        self.actual = actual


class DownloadCancelledError(PistonLaunchException):
    """
    Raised when an in-flight transfer is aborted before completion.
    """

    def __init__(self, url: str):
        super().__init__(f"Download of {url} was cancelled")
        self.url = url


class ManifestParseError(PistonLaunchException):
    """
    Raised when a manifest, version descriptor or asset index cannot be parsed.
    """

    def __init__(self, source: str, reason: str):
        super().__init__(f"Failed to parse {source}: {reason}")
        self.source = source
        self.reason = reason


class UnsupportedArgumentsError(PistonLaunchException):
    """
    Raised when compiling the legacy single-string argument encoding.
    """

    def __init__(self, version_id: str = ""):
        suffix = f" (version {version_id})" if version_id else ""
        super().__init__(f"Non split arguments not supported{suffix}")
        self.version_id = version_id


class VersionNotFoundError(PistonLaunchException):
    """
    Raised when a version selector does not match any entry of the manifest.
    """

    def __init__(self, selector: str):
        super().__init__(f"Version {selector} not found in manifest")
        self.selector = selector


class ConfigurationError(PistonLaunchException):
    """
    Raised when launcher configuration is invalid.
    """
