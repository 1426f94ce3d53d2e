from dataclasses import dataclass
from typing import TypedDict

# Site path ("/index.html") to content hash
Manifest = dict[str, str]

# Content hash to gzip-compressed bytes
ContentStore = dict[str, bytes]


class UploadRequirement(TypedDict):
    required_hashes: list[str]
    upload_url: str


@dataclass(frozen=True)
class FileEntry:
    """A single file after compression and hashing"""

    path: str
    content_hash: str
    compressed: bytes


@dataclass(frozen=True)
class DeployResult:
    version_name: str
    release_name: str
    file_count: int
    uploaded_count: int
