import threading
from pathlib import Path

import pytest

from hoist.backends.base import BaseHostingClient
from hoist.catalog import FileCatalog
from hoist.errors import HostingError
from hoist.ignore import IgnoreRules


class FakeHostingClient(BaseHostingClient):
    """
    In-memory hosting service that records every call made to it.

    Versions move CREATED -> POPULATED -> FINALIZED just like the real
    service, and it refuses calls that would skip a state. Individual
    operations can be made to fail via `failures` and `upload_failures`.
    """

    name = "fake"

    def __init__(self, stored: set[str] | None = None):
        self.lock = threading.Lock()
        self.calls: list[tuple] = []
        self.stored: set[str] = set(stored or ())
        self.versions: dict[str, str] = {}
        self.history: dict[str, list[str]] = {}
        self.releases: list[tuple[str, str]] = []
        self.uploads: list[tuple[str, str, bytes]] = []
        self.failures: dict[str, HostingError] = {}
        self.upload_failures: dict[str, int] = {}
        self.required_override: list[str] | None = None
        self.finalize_status = "FINALIZED"
        self.upload_url = "https://upload.example.com/upload/sites/test/versions/1"

    def _record(self, operation: str, *args):
        with self.lock:
            self.calls.append((operation, *args))
        if operation in self.failures:
            raise self.failures[operation]

    def _transition(self, version_name: str, expected: str, new: str):
        if self.versions.get(version_name) != expected:
            raise HostingError(
                f"{version_name} is {self.versions.get(version_name)}, not {expected}",
                status=400,
            )
        self.versions[version_name] = new
        self.history[version_name].append(new)

    def operations(self) -> list[str]:
        return [call[0] for call in self.calls]

    def create_version(self, site, serving_config):
        self._record("create_version", site, serving_config)
        version_name = f"sites/{site}/versions/v{len(self.versions) + 1}"
        self.versions[version_name] = "CREATED"
        self.history[version_name] = ["CREATED"]
        return version_name

    def populate_files(self, version_name, manifest):
        self._record("populate_files", version_name, manifest)
        self._transition(version_name, "CREATED", "POPULATED")
        if self.required_override is not None:
            required = list(self.required_override)
        else:
            required = sorted(set(manifest.values()) - self.stored)
        return {"required_hashes": required, "upload_url": self.upload_url}

    def upload_content(self, endpoint, content_hash, data):
        self._record("upload_content", endpoint, content_hash)
        if content_hash in self.upload_failures:
            raise HostingError(
                f"upload of {content_hash} failed",
                status=self.upload_failures[content_hash],
            )
        with self.lock:
            self.uploads.append((endpoint, content_hash, data))
            self.stored.add(content_hash)

    def finalize_version(self, version_name):
        self._record("finalize_version", version_name)
        self._transition(version_name, "POPULATED", "FINALIZED")
        return self.finalize_status

    def version_status(self, version_name):
        self._record("version_status", version_name)
        return self.versions.get(version_name, "")

    def create_release(self, site, version_name):
        self._record("create_release", site, version_name)
        if self.versions.get(version_name) != "FINALIZED":
            raise HostingError(f"{version_name} is not finalized", status=400)
        self.releases.append((site, version_name))
        return f"sites/{site}/releases/r{len(self.releases)}"


def write_tree(root: Path, files: dict[str, bytes | str]):
    """
    Writes {relative path: content} under root, making directories.
    """
    for relative_path, content in files.items():
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf8")
        path.write_bytes(content)


@pytest.fixture
def fake_client():
    return FakeHostingClient()


@pytest.fixture
def site_root(tmp_path):
    """
    A small site with a duplicated file and a dotfile.
    """
    root = tmp_path / "public"
    write_tree(
        root,
        {
            "index.html": "<h1>Hi</h1>",
            "style.css": "body{}",
            "about/index.html": "<h1>About</h1>",
            "copy/index.html": "<h1>Hi</h1>",
            ".env": "SECRET=1",
        },
    )
    return root


@pytest.fixture
def catalog(site_root):
    return FileCatalog.build(site_root, IgnoreRules(["**/.*"]))
