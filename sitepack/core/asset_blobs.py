"""Blob and chunk verification for asset-index records.

An asset-index line either points at one blob (``path``) or describes a
blob assembled from ordered chunks (``chunks``). With blob checking on,
every referenced file is sandboxed, stat'ed and (when declared) sized and
hashed. A chunked blob is reassembled for its whole-file checks by
concatenating the chunks in ascending ``index`` order, whatever order
they were declared in.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from sitepack.core.hasher import sha256_concat_hex, sha256_file_hex
from sitepack.core.ndjson import RecordHook
from sitepack.core.safe_path import SafePath
from sitepack.models.documents import AssetIndexRecord, ChunkEntry, non_blank
from sitepack.models.media_types import MediaKind
from sitepack.models.report import Detail

logger = logging.getLogger(__name__)


class _CollectedChunk(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    path: Path
    size: int


def _stat(path: Path) -> os.stat_result | None:
    try:
        return path.stat()
    except OSError:
        return None


class AssetBlobChecker:
    """Checks the files behind asset-index records under *package_root*."""

    def __init__(self, package_root: Path, block_size: int = 1024 * 1024) -> None:
        self.package_root = Path(package_root)
        self.block_size = block_size

    def __call__(self, record: dict[str, Any], line_number: int) -> list[Detail]:
        return self.check(AssetIndexRecord.from_document(record))

    def check(self, record: AssetIndexRecord) -> list[Detail]:
        if record.chunks is not None:
            return self._check_chunked(record)
        return self._check_single(record)

    # ------------------------------------------------------------------
    # Single blob
    # ------------------------------------------------------------------

    def _check_single(self, record: AssetIndexRecord) -> list[Detail]:
        details: list[Detail] = []
        if not non_blank(record.path):
            return details

        resolution = SafePath.resolve(self.package_root, record.path)
        if not resolution.ok or resolution.resolved is None:
            details.append(
                Detail.error(
                    "ASSET_BLOB_PATH_UNSAFE", f"Unsafe asset blob path: {record.path}"
                )
            )
            return details

        info = _stat(resolution.resolved)
        if info is None:
            details.append(
                Detail.error(
                    "ASSET_BLOB_MISSING", f"Asset blob file not found: {record.path}"
                )
            )
            return details
        if not stat.S_ISREG(info.st_mode):
            details.append(
                Detail.error(
                    "ASSET_BLOB_NOT_REGULAR",
                    f"Asset blob path is not a regular file: {record.path}",
                )
            )
            return details

        if record.size is not None and info.st_size != record.size:
            details.append(
                Detail.error(
                    "ASSET_BLOB_SIZE_MISMATCH",
                    f"Asset blob size mismatch: {info.st_size} != {record.size}",
                )
            )

        if record.sha256:
            try:
                actual = sha256_file_hex(resolution.resolved, self.block_size)
            except OSError as exc:
                logger.warning("Digest failed for %s: %s", resolution.resolved, exc)
                details.append(
                    Detail.error(
                        "ASSET_BLOB_DIGEST_ERROR", f"Asset blob digest error: {exc}"
                    )
                )
            else:
                if actual != record.sha256:
                    details.append(
                        Detail.error(
                            "ASSET_BLOB_DIGEST_MISMATCH",
                            f"Asset blob digest mismatch: {actual} != {record.sha256}",
                        )
                    )
        return details

    # ------------------------------------------------------------------
    # Chunked blob
    # ------------------------------------------------------------------

    def _check_chunked(self, record: AssetIndexRecord) -> list[Detail]:
        details: list[Detail] = []
        collected: list[_CollectedChunk] = []
        seen: set[int] = set()
        can_assemble = True

        for chunk in record.chunks or []:
            problem = self._chunk_problem(chunk, seen)
            if problem is not None:
                details.append(problem)
                can_assemble = False
                continue

            resolution = SafePath.resolve(self.package_root, chunk.path)
            if not resolution.ok or resolution.resolved is None:
                details.append(
                    Detail.error(
                        "ASSET_CHUNK_PATH_UNSAFE", f"Unsafe chunk path: {chunk.path}"
                    )
                )
                can_assemble = False
                continue

            info = _stat(resolution.resolved)
            if info is None:
                details.append(
                    Detail.error(
                        "ASSET_CHUNK_MISSING", f"Chunk file not found: {chunk.path}"
                    )
                )
                can_assemble = False
                continue
            if not stat.S_ISREG(info.st_mode):
                details.append(
                    Detail.error(
                        "ASSET_CHUNK_NOT_REGULAR",
                        f"Chunk path is not a regular file: {chunk.path}",
                    )
                )
                can_assemble = False
                continue

            if chunk.size is not None and info.st_size != chunk.size:
                details.append(
                    Detail.error(
                        "ASSET_CHUNK_SIZE_MISMATCH",
                        f"Chunk size mismatch: {info.st_size} != {chunk.size}",
                    )
                )
                can_assemble = False

            if chunk.sha256 is not None:
                try:
                    actual = sha256_file_hex(resolution.resolved, self.block_size)
                except OSError as exc:
                    logger.warning("Digest failed for %s: %s", resolution.resolved, exc)
                    details.append(
                        Detail.error(
                            "ASSET_CHUNK_DIGEST_ERROR", f"Chunk digest error: {exc}"
                        )
                    )
                    can_assemble = False
                else:
                    if actual != chunk.sha256.lower():
                        details.append(
                            Detail.error(
                                "ASSET_CHUNK_DIGEST_MISMATCH",
                                f"Chunk digest mismatch: {actual} != {chunk.sha256}",
                            )
                        )
                        can_assemble = False

            collected.append(
                _CollectedChunk(
                    index=chunk.index, path=resolution.resolved, size=info.st_size
                )
            )

        if not collected or not can_assemble:
            return details

        ordered = sorted(collected, key=lambda c: c.index)
        for expected, entry in enumerate(ordered, start=1):
            if entry.index != expected:
                details.append(
                    Detail.error(
                        "ASSET_CHUNK_INDEX_GAP",
                        f"Chunk index gap: expected {expected}, got {entry.index}",
                    )
                )
                return details

        total = sum(c.size for c in ordered)
        if record.size is not None and total != record.size:
            details.append(
                Detail.error(
                    "ASSET_SIZE_MISMATCH", f"Asset size mismatch: {total} != {record.size}"
                )
            )

        if record.sha256:
            try:
                actual = sha256_concat_hex([c.path for c in ordered], self.block_size)
            except OSError as exc:
                logger.warning("Chunk reassembly digest failed: %s", exc)
                details.append(
                    Detail.error("ASSET_DIGEST_ERROR", f"Asset digest error: {exc}")
                )
            else:
                if actual != record.sha256:
                    details.append(
                        Detail.error(
                            "ASSET_DIGEST_MISMATCH",
                            f"Asset digest mismatch: {actual} != {record.sha256}",
                        )
                    )
        return details

    @staticmethod
    def _chunk_problem(chunk: ChunkEntry | None, seen: set[int]) -> Detail | None:
        """Shape problems that make a chunk unusable; records its index."""
        if chunk is None:
            return Detail.error("ASSET_CHUNK_INVALID", "Chunk entry must be an object")
        if chunk.index is None or chunk.index < 1:
            return Detail.error(
                "ASSET_CHUNK_INDEX_INVALID", "Chunk index must be an integer >= 1"
            )
        if chunk.index in seen:
            return Detail.error(
                "ASSET_CHUNK_INDEX_DUPLICATE", f"Duplicate chunk index: {chunk.index}"
            )
        seen.add(chunk.index)
        if not non_blank(chunk.path):
            return Detail.error(
                "ASSET_CHUNK_PATH_MISSING", "Chunk path is missing or not a string"
            )
        return None


def asset_record_hook(
    package_root: Path,
    kind: MediaKind,
    check_blobs: bool,
    block_size: int = 1024 * 1024,
) -> RecordHook | None:
    """The per-record hook for a stream of *kind*, or ``None`` when there is
    nothing to check beyond the schema."""
    if not check_blobs or not kind.checks_asset_blobs:
        return None
    return AssetBlobChecker(package_root, block_size)
