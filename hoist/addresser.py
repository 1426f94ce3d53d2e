import gzip
import hashlib
import logging
import zlib
from pathlib import Path

from hoist.constants import GZIP_LEVEL
from hoist.errors import CompressionError

logger = logging.getLogger(__name__)


def compress(raw: bytes) -> bytes:
    """
    Gzips the whole of raw in one go.

    The header mtime is pinned to zero so the output depends on the input
    bytes alone; hashes are taken over this output.
    """
    try:
        return gzip.compress(raw, compresslevel=GZIP_LEVEL, mtime=0)
    except (zlib.error, OSError) as e:
        raise CompressionError(f"could not flush gzip stream: {e}") from e


def address(raw: bytes) -> tuple[bytes, str]:
    """
    Returns (compressed bytes, sha256 hexdigest of the compressed bytes)
    """
    compressed = compress(raw)
    return compressed, hashlib.sha256(compressed).hexdigest()


def address_file(path: Path) -> tuple[bytes, str]:
    with open(path, "rb") as fh:
        raw = fh.read()
    compressed, content_hash = address(raw)
    logger.debug(f"Addressed {path} ({len(raw)} -> {len(compressed)} bytes)")
    return compressed, content_hash
