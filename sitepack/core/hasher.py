"""Streaming SHA-256 helpers for content-addressed artifact checks.

Catalog digests use the decorated ``sha256:<hex>`` form; asset-index
records, chunks and volume descriptors store bare hex. Files are always
read in fixed-size blocks, never buffered whole.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from pathlib import Path
from typing import Any

DIGEST_PREFIX = "sha256:"

_DEFAULT_BLOCK_SIZE = 1024 * 1024


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def _feed(digest: Any, path: Path, block_size: int) -> None:
    with open(path, "rb") as handle:
        while True:
            block = handle.read(block_size)
            if not block:
                break
            digest.update(block)


def sha256_file_hex(path: Path, block_size: int = _DEFAULT_BLOCK_SIZE) -> str:
    """Return the bare hex SHA-256 of a file's bytes."""
    digest = hashlib.sha256()
    _feed(digest, Path(path), block_size)
    return digest.hexdigest()


def sha256_file(path: Path, block_size: int = _DEFAULT_BLOCK_SIZE) -> str:
    """Content-address a file.

    Returns "sha256:<hex>" format used by catalog descriptors.
    """
    return f"{DIGEST_PREFIX}{sha256_file_hex(path, block_size)}"


def sha256_concat_hex(
    paths: Iterable[Path], block_size: int = _DEFAULT_BLOCK_SIZE
) -> str:
    """SHA-256 of the byte-concatenation of *paths*, in the order given.

    This is how a chunked asset's whole-file digest is reproduced from its
    parts, so callers must pass chunks already sorted by index.
    """
    digest = hashlib.sha256()
    for path in paths:
        _feed(digest, Path(path), block_size)
    return digest.hexdigest()
