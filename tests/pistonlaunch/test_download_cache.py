"""
Tests for the HTTP client and the verified download cache.
"""

import hashlib
import threading

import pytest
import requests

from pistonlaunch.download_cache import DownloadCache, HttpClient
from pistonlaunch.launch_exceptions import (
    DownloadCancelledError,
    IntegrityMismatchError,
    TransportError,
)

URL = "https://example.invalid/payload.bin"
PAYLOAD = b"the quick brown fox jumps over the lazy dog" * 50
PAYLOAD_SHA1 = hashlib.sha1(PAYLOAD).hexdigest()


class TestHttpClient:
    """Tests for HttpClient.download."""

    @pytest.mark.parametrize("chunk_size", [1, 7, 64, 4096])
    def test_digest_independent_of_chunking(self, fake_session_factory, chunk_size):
        session = fake_session_factory({URL: PAYLOAD}, chunk_size=chunk_size)
        client = HttpClient(session)
        assert client.download(URL, PAYLOAD_SHA1) == PAYLOAD

    def test_uppercase_expected_digest(self, fake_session_factory):
        client = HttpClient(fake_session_factory({URL: PAYLOAD}))
        assert client.download(URL, PAYLOAD_SHA1.upper()) == PAYLOAD

    def test_no_digest(self, fake_session_factory):
        client = HttpClient(fake_session_factory({URL: PAYLOAD}))
        assert client.download(URL) == PAYLOAD

    def test_mismatch(self, fake_session_factory):
        client = HttpClient(fake_session_factory({URL: PAYLOAD}))
        with pytest.raises(IntegrityMismatchError) as exc_info:
            client.download(URL, "0" * 40)
        assert exc_info.value.url == URL
        assert exc_info.value.expected == "0" * 40
        assert exc_info.value.actual == PAYLOAD_SHA1
        assert str(exc_info.value) == f"{URL} did not match expected hash of {'0' * 40}"

    def test_error_status(self, fake_session_factory):
        client = HttpClient(fake_session_factory({}))
        with pytest.raises(TransportError) as exc_info:
            client.download(URL)
        assert exc_info.value.url == URL
        assert "404" in exc_info.value.reason

    def test_connection_error(self, fake_session_factory):
        client = HttpClient(fake_session_factory({URL: requests.ConnectionError("refused")}))
        with pytest.raises(TransportError):
            client.download(URL)

    def test_timeout_is_passed(self, fake_session_factory):
        session = fake_session_factory({URL: PAYLOAD})
        HttpClient(session, timeout=5.0).download(URL)
        assert session.timeouts == [5.0]

    def test_cancelled(self, fake_session_factory):
        event = threading.Event()
        event.set()
        client = HttpClient(fake_session_factory({URL: PAYLOAD}))
        with pytest.raises(DownloadCancelledError):
            client.download(URL, cancel_event=event)

    def test_cancelled_before_request(self, fake_session_factory):
        event = threading.Event()
        event.set()
        session = fake_session_factory({URL: PAYLOAD})
        with pytest.raises(DownloadCancelledError):
            HttpClient(session).download(URL, cancel_event=event)
        assert session.call_count() == 0

    def test_context_manager_closes_session(self, fake_session_factory):
        session = fake_session_factory({})
        with HttpClient(session):
            pass
        assert session.closed


class TestDownloadCache:
    """Tests for DownloadCache.fetch."""

    @pytest.fixture
    def session(self, fake_session_factory):
        return fake_session_factory({URL: PAYLOAD}, chunk_size=16)

    @pytest.fixture
    def cache(self, session):
        return DownloadCache(HttpClient(session))

    def test_fetch_writes_destination(self, cache, tmp_path):
        destination = tmp_path / "nested" / "dir" / "payload.bin"
        assert cache.fetch(URL, destination, PAYLOAD_SHA1) == PAYLOAD
        assert destination.read_bytes() == PAYLOAD
        assert DownloadCache.is_cached(destination)

    def test_second_fetch_is_served_from_disk(self, cache, session, tmp_path):
        destination = tmp_path / "payload.bin"
        first = cache.fetch(URL, destination, PAYLOAD_SHA1)
        second = cache.fetch(URL, destination, PAYLOAD_SHA1)
        assert first == second == PAYLOAD
        assert session.call_count(URL) == 1

    def test_cache_hit_is_not_reverified(self, cache, session, tmp_path):
        destination = tmp_path / "payload.bin"
        destination.write_bytes(b"corrupted")
        assert cache.fetch(URL, destination, PAYLOAD_SHA1) == b"corrupted"
        assert session.call_count() == 0

    def test_mismatch_writes_nothing(self, cache, tmp_path):
        destination = tmp_path / "dir" / "payload.bin"
        with pytest.raises(IntegrityMismatchError):
            cache.fetch(URL, destination, "f" * 40)
        assert not destination.exists()
        assert not destination.parent.exists() or list(destination.parent.iterdir()) == []

    def test_transport_error_writes_nothing(self, tmp_path, fake_session_factory):
        cache = DownloadCache(HttpClient(fake_session_factory({})))
        destination = tmp_path / "payload.bin"
        with pytest.raises(TransportError):
            cache.fetch(URL, destination)
        assert not destination.exists()

    def test_cancelled_transfer_is_not_published(self, cache, tmp_path):
        event = threading.Event()
        event.set()
        destination = tmp_path / "payload.bin"
        with pytest.raises(DownloadCancelledError):
            cache.fetch(URL, destination, PAYLOAD_SHA1, event)
        assert not destination.exists()
        assert list(tmp_path.iterdir()) == []

    def test_no_temporary_files_left(self, cache, tmp_path):
        cache.fetch(URL, tmp_path / "payload.bin", PAYLOAD_SHA1)
        assert [p.name for p in tmp_path.iterdir()] == ["payload.bin"]

    def test_unwritable_destination(self, cache, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"")
        with pytest.raises(TransportError):
            cache.fetch(URL, blocker / "payload.bin", PAYLOAD_SHA1)

    def test_unreadable_cache_hit(self, cache, session, tmp_path, failing_reads):
        destination = tmp_path / "payload.bin"
        destination.write_bytes(PAYLOAD)
        failing_reads.add(destination)

        with pytest.raises(TransportError) as exc_info:
            cache.fetch(URL, destination, PAYLOAD_SHA1)
        assert isinstance(exc_info.value.__cause__, OSError)
        assert session.call_count() == 0
