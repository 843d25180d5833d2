"""
Verified download cache.

This package handles:
1. Streaming remote content over HTTP
2. Verifying it against an expected SHA-1
3. Publishing it atomically under the install root
4. Serving existing files without network access
"""

from .cache import DownloadCache
from .http_client import HttpClient

__all__ = ["DownloadCache", "HttpClient"]
