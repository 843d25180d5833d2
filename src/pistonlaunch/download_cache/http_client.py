"""
Streaming HTTP transport with incremental SHA-1 verification.
"""

import hashlib
import threading
from typing import Optional

import requests

from pistonlaunch.launch_exceptions import (
    DownloadCancelledError,
    IntegrityMismatchError,
    TransportError,
)

DEFAULT_TIMEOUT = 30.0
DEFAULT_CHUNK_SIZE = 64 * 1024


class HttpClient:
    """
    Thin wrapper over a requests session.

    One instance is owned by the launcher and shared by every fetch of a
    resolution run; requests.Session is safe to share across the worker threads
    for plain GET requests.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.chunk_size = chunk_size

    def send(self, url: str) -> requests.Response:
        """
        Issue a streaming GET request.

        Raises:
            TransportError: If the request fails or the status is not a success
        """
        try:
            response = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(url, str(e)) from e

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            response.close()
            raise TransportError(url, str(e)) from e

        return response

    def download(
        self,
        url: str,
        sha1: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> bytes:
        """
        Download the body of `url`, verifying it against `sha1` when given.

        Args:
            url: URL to download from
            sha1: Expected hex SHA-1 of the body, or None to skip verification
            cancel_event: Checked before the request and between chunks; when set
                the transfer is aborted

        Returns:
            The response body

        Raises:
            TransportError: On network failure or non-success status
            IntegrityMismatchError: If the body does not hash to `sha1`
            DownloadCancelledError: If `cancel_event` was set mid-transfer
        """
        if cancel_event is not None and cancel_event.is_set():
            raise DownloadCancelledError(url)

        response = self.send(url)

        data = bytearray()
        digest = hashlib.sha1() if sha1 is not None else None

        try:
            for chunk in response.iter_content(chunk_size=self.chunk_size):
                if cancel_event is not None and cancel_event.is_set():
                    raise DownloadCancelledError(url)
                data.extend(chunk)
                if digest is not None:
                    digest.update(chunk)
        except requests.RequestException as e:
            raise TransportError(url, str(e)) from e
        finally:
            response.close()

        if sha1 is not None and digest.hexdigest() != sha1.lower():
            raise IntegrityMismatchError(url, sha1, digest.hexdigest())

        return bytes(data)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
