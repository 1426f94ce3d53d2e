import gzip
import hashlib
import zlib
from unittest.mock import patch

import pytest

from hoist.addresser import address, address_file, compress
from hoist.errors import CompressionError


class TestCompress:
    """
    Tests for the gzip step.
    """

    def test_output_is_gzip(self):
        assert gzip.decompress(compress(b"<h1>Hi</h1>")) == b"<h1>Hi</h1>"

    def test_deterministic(self):
        """
        Identical input must give byte-identical output, or hashes drift.
        """
        content = b"body { color: red; }" * 100
        assert compress(content) == compress(content)

    def test_header_has_no_timestamp(self):
        # Bytes 4-8 of a gzip header are the mtime
        assert compress(b"anything")[4:8] == b"\x00\x00\x00\x00"

    def test_empty_input(self):
        assert gzip.decompress(compress(b"")) == b""

    def test_compressor_failure(self):
        with patch("hoist.addresser.gzip.compress", side_effect=zlib.error("boom")):
            with pytest.raises(CompressionError, match="boom"):
                compress(b"content")


class TestAddress:
    """
    Tests for hashing the compressed bytes.
    """

    def test_hash_covers_compressed_bytes(self):
        compressed, content_hash = address(b"<h1>Hi</h1>")
        assert content_hash == hashlib.sha256(compressed).hexdigest()
        assert content_hash != hashlib.sha256(b"<h1>Hi</h1>").hexdigest()

    def test_hash_is_lowercase_hex(self):
        _, content_hash = address(b"body{}")
        assert len(content_hash) == 64
        assert content_hash == content_hash.lower()
        int(content_hash, 16)

    def test_same_content_same_hash(self):
        assert address(b"same")[1] == address(b"same")[1]

    def test_different_content_different_hash(self):
        assert address(b"<h1>Hi</h1>")[1] != address(b"body{}")[1]


class TestAddressFile:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "index.html"
        path.write_bytes(b"<h1>Hi</h1>")
        assert address_file(path) == address(b"<h1>Hi</h1>")

    def test_missing_file_raises_oserror(self, tmp_path):
        with pytest.raises(OSError):
            address_file(tmp_path / "missing.html")
