"""
Verified download cache.

A fetched payload is published at its destination only after it has been
fully received and verified, so a file present at a destination path is
always a complete earlier download.
"""

import contextlib
import os
import pathlib
import tempfile
import threading
from typing import Optional, Union

from pistonlaunch.download_cache.http_client import HttpClient
from pistonlaunch.launch_exceptions import TransportError

PathLike = Union[str, "os.PathLike[str]"]


class DownloadCache:
    """
    Fetches remote content into an install directory, skipping the network
    when the destination already exists.
    """

    def __init__(self, client: HttpClient):
        """
        Args:
            client: Transport used for cache misses
        """
        self.client = client

    @staticmethod
    def is_cached(destination_path: PathLike) -> bool:
        return pathlib.Path(destination_path).is_file()

    def fetch(
        self,
        url: str,
        destination_path: PathLike,
        sha1: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> bytes:
        """
        Return the content of `url`, materialized at `destination_path`.

        An existing file is returned as-is and is not re-verified.

        Raises:
            TransportError: On network failure or if the file cannot be read or written
            IntegrityMismatchError: If the payload does not hash to `sha1`
            DownloadCancelledError: If `cancel_event` was set mid-transfer
        """
        destination = pathlib.Path(destination_path)
        if destination.is_file():
            try:
                return destination.read_bytes()
            except OSError as e:
                raise TransportError(url, f"could not read {destination}: {e}") from e

        data = self.client.download(url, sha1, cancel_event)

        try:
            self._publish(destination, data)
        except OSError as e:
            raise TransportError(url, f"could not write {destination}: {e}") from e

        return data

    @staticmethod
    def _publish(destination: pathlib.Path, data: bytes) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".part", dir=destination.parent
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(temp_path, destination)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(temp_path)
            raise
