"""Sandboxed extraction of one zip volume into a destination root."""

from __future__ import annotations

import logging
import shutil
import zipfile
import zlib
from pathlib import Path

from sitepack.core.safe_path import SafePath
from sitepack.models.report import Message

logger = logging.getLogger(__name__)

# Failures zipfile raises while reading a damaged or encrypted member.
EXTRACT_ERRORS = (
    zipfile.BadZipFile,
    zipfile.LargeZipFile,
    zlib.error,
    EOFError,
    RuntimeError,
    NotImplementedError,
    OSError,
)


def extract_archive(archive: Path, dest_root: Path) -> list[Message]:
    """Extract *archive* into *dest_root*, one entry at a time.

    Every entry name goes through ``SafePath`` against *dest_root*; an
    entry that would land outside it is reported as
    ``VOLUME_ENTRY_PATH_UNSAFE`` and skipped while the rest of the archive
    is still extracted. Later entries overwrite earlier files at the same
    path.

    Raises one of ``EXTRACT_ERRORS`` when the archive or a member
    cannot be read; the caller decides how to report that.
    """
    messages: list[Message] = []
    dest_root = Path(dest_root)

    with zipfile.ZipFile(archive, "r") as zf:
        for info in zf.infolist():
            resolution = SafePath.resolve(dest_root, info.filename)
            if not resolution.ok or resolution.resolved is None:
                logger.warning("Skipping unsafe entry %r in %s", info.filename, archive)
                messages.append(
                    Message.error(
                        "VOLUME_ENTRY_PATH_UNSAFE",
                        f"Unsafe entry path: {info.filename}",
                        entryPath=info.filename,
                        volume=str(archive),
                    )
                )
                continue

            target = resolution.resolved
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as source, open(target, "wb") as sink:
                shutil.copyfileobj(source, sink)

    return messages
