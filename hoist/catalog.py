import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from hoist.addresser import address_file
from hoist.cancel import CancelToken
from hoist.errors import CompressionError, HashError, WalkError
from hoist.ignore import IgnoreRules
from hoist.types import ContentStore, FileEntry, Manifest

logger = logging.getLogger(__name__)


def walk_files(root: Path) -> Iterator[str]:
    """
    Yields the site path ("/dir/file.html") of every regular file under root,
    in sorted order so repeated walks of the same tree agree.

    Symlinked files are included; symlinked directories are not descended.
    """
    root = Path(root)
    if not root.is_dir():
        raise WalkError(f"{root} is not a directory")

    def on_error(error: OSError):
        raise WalkError(f"cannot list {error.filename}: {error.strerror}") from error

    for directory, subdirs, filenames in root.walk(on_error=on_error):
        subdirs.sort()
        for filename in sorted(filenames):
            file_path = directory / filename
            if not file_path.is_file():
                continue
            yield "/" + file_path.relative_to(root).as_posix()


def filter_ignored(paths: Iterable[str], rules: IgnoreRules) -> Iterator[str]:
    for path in paths:
        if rules.matches(path):
            logger.debug(f"Ignoring {path}")
            continue
        yield path


class FileCatalog:
    """
    The manifest (path -> hash) and content store (hash -> gzip bytes) for
    one site root.

    Both maps are filled from the same walk, so every hash in the manifest
    has content available. Once built the catalog is read-only and can be
    shared between upload threads.
    """

    def __init__(self, root: Path, entries: list[FileEntry]):
        self.root = root
        self.entries = entries
        self.manifest: Manifest = {}
        self.content: ContentStore = {}
        for entry in entries:
            self.manifest[entry.path] = entry.content_hash
            self.content.setdefault(entry.content_hash, entry.compressed)

    def __len__(self):
        return len(self.manifest)

    def __repr__(self):
        return f"<FileCatalog {self.root} ({len(self)} files)>"

    @property
    def total_size(self) -> int:
        """
        Compressed size of the distinct contents
        """
        return sum(len(data) for data in self.content.values())

    @classmethod
    def build(
        cls,
        root: Path,
        rules: IgnoreRules | None = None,
        cancel: CancelToken | None = None,
    ) -> "FileCatalog":
        root = Path(root)
        rules = rules or IgnoreRules()
        entries = []
        for path in filter_ignored(walk_files(root), rules):
            if cancel is not None:
                cancel.check(f"hashing {path}")
            try:
                compressed, content_hash = address_file(root / path.lstrip("/"))
            except (OSError, CompressionError) as e:
                raise HashError(path, e) from e
            entries.append(
                FileEntry(path=path, content_hash=content_hash, compressed=compressed)
            )
            logger.debug(f"Hashed {path} as {content_hash}")
        catalog = cls(root, entries)
        logger.info(
            f"{len(catalog)} files catalogued "
            f"({len(catalog.content)} distinct contents)"
        )
        return catalog
