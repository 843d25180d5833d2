"""
Shared fixtures: an in-memory stand-in for requests.Session serving the JSON
documents under fixtures/ and the canned artifact bodies below.
"""

import errno
import json
import pathlib
import threading
from collections import Counter
from typing import Dict, Optional, Union

import pytest
import requests

from pistonlaunch.launch_config import LauncherConfig
from pistonlaunch.launch_logger import LaunchLogger
from pistonlaunch.piston_models.rule import Architecture, OperatingSystem, Platform
from pistonlaunch.piston_models.version import VERSION_MANIFEST_URL

FIXTURES_DIR = pathlib.Path(__file__).parent / "fixtures"

ASSET_INDEX_URL_PREFIX = "https://piston-meta.mojang.com/v1/packages/"

ARTIFACT_BODIES = {
    "https://piston-data.mojang.com/v1/objects/e0ede96191ad4f38d167edb4cad56c99fda06502/client.jar": b"client jar",
    "https://libraries.minecraft.net/com/mojang/logging/0.1.0/logging-0.1.0.jar": b"logging library",
    "https://libraries.minecraft.net/org/lwjgl/lwjgl/3.3.3/lwjgl-3.3.3-natives-linux.jar": b"lwjgl natives linux",
    "https://libraries.minecraft.net/org/lwjgl/lwjgl/3.3.3/lwjgl-3.3.3-natives-macos.jar": b"lwjgl natives macos",
    "https://libraries.minecraft.net/com/example/notosx/1.0/notosx-1.0.jar": b"not on osx",
    "https://libraries.minecraft.net/com/example/demo/1.0/demo-1.0.jar": b"demo only",
    "https://piston-data.mojang.com/v1/objects/d47f0f4efcaf988463eedca71720263288fb6cc2/client-1.12.xml": b"<Configuration/>",
    "https://resources.download.minecraft.net/3f/3fe1fec1db985f4253868dd0bf38d389464ab04a": b"asset one",
    "https://resources.download.minecraft.net/84/84933a56f14d3b8bc08418564af037ec494468b3": b"asset two",
}

Route = Union[bytes, Exception]


class FakeResponse:
    def __init__(self, url: str, status_code: int, body: bytes, chunk_size: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        self.body = body
        self.chunk_size = chunk_size
        self.closed = False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(
                f"{self.status_code} Client Error for url: {self.url}", response=self
            )

    def iter_content(self, chunk_size: int = 1):
        size = self.chunk_size or chunk_size
        for start in range(0, len(self.body), size):
            yield self.body[start:start + size]

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """
    Serves canned bodies by URL and records every request. Unknown URLs get a 404.
    """

    def __init__(self, routes: Dict[str, Route], chunk_size: Optional[int] = None):
        self.routes = dict(routes)
        self.chunk_size = chunk_size
        self.calls = []
        self.timeouts = []
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url: str, stream: bool = False, timeout: Optional[float] = None) -> FakeResponse:
        with self._lock:
            self.calls.append(url)
            self.timeouts.append(timeout)

        route = self.routes.get(url)
        if isinstance(route, Exception):
            raise route
        if route is None:
            return FakeResponse(url, 404, b"", self.chunk_size)
        return FakeResponse(url, 200, route, self.chunk_size)

    def call_count(self, url: Optional[str] = None) -> int:
        if url is None:
            return len(self.calls)
        return Counter(self.calls)[url]

    def close(self) -> None:
        self.closed = True


def load_fixture(name: str) -> bytes:
    return (FIXTURES_DIR / name).read_bytes()


def load_fixture_json(name: str) -> dict:
    return json.loads(load_fixture(name))


def build_piston_routes() -> Dict[str, Route]:
    """
    Routes for the manifest, the version descriptors and the asset index as a
    piston-meta server would serve them.
    """
    routes: Dict[str, Route] = {VERSION_MANIFEST_URL: load_fixture("version_manifest.json")}

    manifest = load_fixture_json("version_manifest.json")
    for version in manifest["versions"]:
        fixture = FIXTURES_DIR / f"version_{version['id']}.json"
        if fixture.exists():
            routes[version["url"]] = fixture.read_bytes()

    asset_index = load_fixture_json("version_1.21.json")["assetIndex"]
    routes[asset_index["url"]] = load_fixture("asset_index_17.json")

    routes.update(ARTIFACT_BODIES)
    return routes


@pytest.fixture
def fake_session_factory():
    def factory(routes: Dict[str, Route], chunk_size: Optional[int] = None) -> FakeSession:
        return FakeSession(routes, chunk_size)

    return factory


@pytest.fixture
def piston_session() -> FakeSession:
    """A fake session serving a complete piston-meta installation."""
    return FakeSession(build_piston_routes())


@pytest.fixture
def linux_x64() -> Platform:
    return Platform(os=OperatingSystem.LINUX, arch=Architecture.X64)


@pytest.fixture
def osx_arm64() -> Platform:
    return Platform(os=OperatingSystem.OSX, arch=Architecture.ARM64)


@pytest.fixture
def launcher_config(tmp_path) -> LauncherConfig:
    return LauncherConfig(install_root=str(tmp_path / "install"), max_workers=4)


@pytest.fixture
def logger() -> LaunchLogger:
    return LaunchLogger()


@pytest.fixture
def version_1_21_data() -> dict:
    return load_fixture_json("version_1.21.json")


@pytest.fixture
def asset_index_data() -> dict:
    return load_fixture_json("asset_index_17.json")


@pytest.fixture
def fixture_bytes():
    """Loader for the raw bytes of a document under fixtures/."""
    return load_fixture


@pytest.fixture
def failing_reads(monkeypatch):
    """
    Paths added to the returned set fail with EIO when read through
    pathlib.Path.read_bytes.
    """
    failing = set()
    read_bytes = pathlib.Path.read_bytes

    def guarded_read_bytes(path):
        if path in failing:
            raise OSError(errno.EIO, "Input/output error", str(path))
        return read_bytes(path)

    monkeypatch.setattr(pathlib.Path, "read_bytes", guarded_read_bytes)
    return failing
