"""Create and extract volume sets.

A volume set splits an unpacked package into zip parts no larger than
``max_part_size``. Part 1 always starts with the manifest and the catalog
so a reader can bootstrap from it; the remaining files are packed
greedily in relative-path order.
"""

from __future__ import annotations

import json
import logging
import posixpath
import stat
import zipfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from sitepack import __version__
from sitepack.config import SitepackConfig, config as default_config
from sitepack.core.archive import EXTRACT_ERRORS, extract_archive
from sitepack.core.documents import DocumentReadError, read_json_document
from sitepack.core.hasher import sha256_file_hex
from sitepack.core.package_validator import CATALOG_FILE, MANIFEST_FILE
from sitepack.core.safe_path import SafePath, UnsafePathError
from sitepack.core.volume_set import VOLUMES_FILE
from sitepack.models.documents import (
    AssetIndexRecord,
    Catalog,
    Manifest,
    VolumeSetDescriptor,
    non_blank,
)
from sitepack.models.media_types import ASSET_INDEX

logger = logging.getLogger(__name__)

REQUIRED_FILES: tuple[str, ...] = (MANIFEST_FILE, CATALOG_FILE)


class VolumeBuildError(RuntimeError):
    """Raised when a volume set cannot be created or extracted.

    ``problems`` lists every issue found, not just the first.
    """

    def __init__(self, problems: list[str] | str) -> None:
        self.problems = [problems] if isinstance(problems, str) else list(problems)
        super().__init__("\n".join(self.problems))


class PackageFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    rel_path: str
    abs_path: Path
    size: int


class VolumeRecord(BaseModel):
    """One written part, as listed in the descriptor."""

    model_config = ConfigDict(frozen=True)

    index: int
    file: str
    size: int
    sha256: str


class VolumeSetResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    descriptor_path: Path
    package_id: str
    volumes: list[VolumeRecord]


def normalize_rel_path(rel_path: str) -> str:
    """POSIX form of a declared relative path (``a\\b/./c`` -> ``a/b/c``)."""
    return posixpath.normpath(rel_path.replace("\\", "/"))


# ---------------------------------------------------------------------------
# Collect
# ---------------------------------------------------------------------------

class _Collector:
    def __init__(self, package_dir: Path) -> None:
        self.package_dir = package_dir
        self.files: dict[str, PackageFile] = {}
        self.problems: list[str] = []

    def add(self, rel_path: str) -> None:
        resolution = SafePath.resolve(self.package_dir, rel_path)
        if not resolution.ok or resolution.resolved is None:
            self.problems.append(f"Unsafe path: {rel_path} ({resolution.message})")
            return

        normalized = normalize_rel_path(rel_path)
        try:
            info = resolution.resolved.stat()
        except OSError:
            self.problems.append(f"Missing file: {normalized}")
            return
        if not stat.S_ISREG(info.st_mode):
            self.problems.append(f"Not a regular file: {normalized}")
            return

        self.files.setdefault(
            normalized,
            PackageFile(
                rel_path=normalized, abs_path=resolution.resolved, size=info.st_size
            ),
        )

    def add_asset_index(self, rel_path: str) -> None:
        """Add every blob and chunk path referenced by an asset index."""
        resolution = SafePath.resolve(self.package_dir, rel_path)
        if not resolution.ok or resolution.resolved is None:
            self.problems.append(
                f"Unsafe asset-index path: {rel_path} ({resolution.message})"
            )
            return
        try:
            with open(resolution.resolved, encoding="utf-8") as handle:
                for line_number, line in enumerate(handle, start=1):
                    if line.strip() == "":
                        continue
                    try:
                        raw = json.loads(line)
                    except (ValueError, RecursionError) as exc:
                        self.problems.append(
                            f"Asset-index JSON error in {rel_path} line {line_number}: {exc}"
                        )
                        continue
                    record = AssetIndexRecord.from_document(raw)
                    if non_blank(record.path):
                        self.add(record.path)
                    for chunk in record.chunks or []:
                        if chunk is not None and non_blank(chunk.path):
                            self.add(chunk.path)
        except FileNotFoundError:
            self.problems.append(f"Asset-index file not found: {rel_path}")
        except (OSError, UnicodeDecodeError) as exc:
            self.problems.append(f"Failed to read asset-index {rel_path}: {exc}")


def collect_package_files(package_dir: Path) -> tuple[list[PackageFile], Manifest]:
    """Every file a volume set must carry for *package_dir*.

    Raises ``VolumeBuildError`` listing every unsafe, missing or irregular
    path found.
    """
    package_dir = Path(package_dir)
    problems = [
        f"{name} not found" for name in REQUIRED_FILES if not (package_dir / name).exists()
    ]
    if problems:
        raise VolumeBuildError(problems)

    documents = {}
    for name, label in ((MANIFEST_FILE, "manifest"), (CATALOG_FILE, "catalog")):
        try:
            documents[name] = read_json_document(package_dir / name)
        except (FileNotFoundError, DocumentReadError) as exc:
            problems.append(f"Failed to read {label}: {exc}")
    if problems:
        raise VolumeBuildError(problems)

    manifest = Manifest.from_document(documents[MANIFEST_FILE])
    catalog = Catalog.from_document(documents[CATALOG_FILE])

    collector = _Collector(package_dir)
    for name in REQUIRED_FILES:
        collector.add(name)
    for artifact in catalog.artifacts:
        if non_blank(artifact.declared_path):
            collector.add(artifact.declared_path)
    for artifact in catalog.artifacts:
        if artifact.media_type == ASSET_INDEX and artifact.declared_path is not None:
            collector.add_asset_index(artifact.declared_path)

    if collector.problems:
        raise VolumeBuildError(collector.problems)
    return list(collector.files.values()), manifest


# ---------------------------------------------------------------------------
# Plan
# ---------------------------------------------------------------------------

def plan_volumes(
    files: list[PackageFile], max_part_size: int
) -> list[list[PackageFile]]:
    """Split *files* into parts of at most *max_part_size* bytes each.

    Examples
    --------
    Manifest (10 B) and catalog (20 B) with a 25 B limit::

        VolumeBuildError: Required files exceed maxPartSize (30 > 25)
    """
    by_path = {f.rel_path: f for f in files}
    missing = [name for name in REQUIRED_FILES if name not in by_path]
    if missing:
        raise VolumeBuildError(f"Missing required files: {', '.join(missing)}")

    current = [by_path[name] for name in REQUIRED_FILES]
    current_size = sum(f.size for f in current)
    if current_size > max_part_size:
        raise VolumeBuildError(
            f"Required files exceed maxPartSize ({current_size} > {max_part_size})"
        )

    parts: list[list[PackageFile]] = []
    remaining = sorted(
        (f for f in files if f.rel_path not in REQUIRED_FILES),
        key=lambda f: f.rel_path,
    )
    for entry in remaining:
        if entry.size > max_part_size:
            raise VolumeBuildError(
                f"File exceeds maxPartSize: {entry.rel_path} "
                f"({entry.size} > {max_part_size})"
            )
        if current_size + entry.size > max_part_size:
            parts.append(current)
            current, current_size = [], 0
        current.append(entry)
        current_size += entry.size

    if current:
        parts.append(current)
    return parts


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

def _write_zip(entries: list[PackageFile], out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(out_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for entry in entries:
            zf.write(entry.abs_path, arcname=entry.rel_path)


def create_volumes(
    package_dir: Path,
    out_dir: Path,
    max_part_size: int | None = None,
    package_id: str | None = None,
    base_name: str | None = None,
    overwrite: bool = False,
    settings: SitepackConfig | None = None,
) -> VolumeSetResult:
    """Write ``<base>.part<N>.sitepack`` parts and ``sitepack.volumes.json``."""
    settings = settings or default_config
    max_part_size = max_part_size or settings.max_part_size
    base_name = base_name or settings.volume_base_name
    if max_part_size <= 0:
        raise VolumeBuildError("max-part-size must be a positive integer")

    package_dir = Path(package_dir)
    out_dir = Path(out_dir)
    files, manifest = collect_package_files(package_dir)
    package_id = package_id or manifest.package_id or package_dir.resolve().name

    parts = plan_volumes(files, max_part_size)
    out_dir.mkdir(parents=True, exist_ok=True)

    records: list[VolumeRecord] = []
    for index, entries in enumerate(parts, start=1):
        file_name = f"{base_name}.part{index}.sitepack"
        out_path = out_dir / file_name
        if out_path.exists():
            if not overwrite:
                raise VolumeBuildError(f"Output file already exists: {out_path}")
            out_path.unlink()

        _write_zip(entries, out_path)
        size = out_path.stat().st_size
        if size > max_part_size:
            raise VolumeBuildError(
                f"Volume exceeds maxPartSize: {file_name} ({size} > {max_part_size})"
            )
        records.append(
            VolumeRecord(
                index=index,
                file=file_name,
                size=size,
                sha256=sha256_file_hex(out_path, settings.digest_chunk_size),
            )
        )
        logger.debug("Wrote %s (%d files, %d bytes)", file_name, len(entries), size)

    descriptor_path = out_dir / VOLUMES_FILE
    if descriptor_path.exists() and not overwrite:
        raise VolumeBuildError(f"Output file already exists: {descriptor_path}")

    descriptor = {
        "spec": {"name": "sitepack", "version": __version__},
        "kind": "volume-set",
        "packageId": package_id,
        "container": "zip",
        "maxPartSize": max_part_size,
        "bootstrap": {
            "volumeIndex": 1,
            "containsManifest": True,
            "containsCatalog": True,
        },
        "volumes": [
            {
                "index": r.index,
                "count": len(records),
                "file": r.file,
                "size": r.size,
                "sha256": r.sha256,
            }
            for r in records
        ],
    }
    descriptor_path.write_text(json.dumps(descriptor, indent=2) + "\n", encoding="utf-8")
    logger.info(
        "Created volume set for %s: %d part(s) in %s", package_id, len(records), out_dir
    )
    return VolumeSetResult(
        descriptor_path=descriptor_path, package_id=package_id, volumes=records
    )


# ---------------------------------------------------------------------------
# Extract
# ---------------------------------------------------------------------------

def extract_volumes(volumes_path: Path, out_dir: Path, overwrite: bool = False) -> Path:
    """Overlay every part into *out_dir* in ascending ``index`` order.

    *out_dir* must be empty (or absent) unless *overwrite* is set.
    """
    volumes_path = Path(volumes_path)
    out_dir = Path(out_dir)
    try:
        raw = read_json_document(volumes_path)
    except FileNotFoundError as exc:
        raise VolumeBuildError(f"Volume set descriptor not found: {volumes_path}") from exc
    except DocumentReadError as exc:
        raise VolumeBuildError(f"Failed to read volume set: {exc}") from exc

    volumes = VolumeSetDescriptor.from_document(raw).volumes
    if not volumes:
        raise VolumeBuildError("Volume set contains no volumes")

    if not overwrite and out_dir.exists() and any(out_dir.iterdir()):
        raise VolumeBuildError(f"Output directory is not empty: {out_dir}")
    out_dir.mkdir(parents=True, exist_ok=True)

    base_dir = volumes_path.parent
    ordered = sorted(
        (v for v in volumes if v is not None), key=lambda v: v.index
    )
    if len(ordered) != len(volumes):
        raise VolumeBuildError("Volume entry must be an object")

    for volume in ordered:
        if not non_blank(volume.file):
            raise VolumeBuildError("Volume file entry is missing")
        try:
            volume_path = SafePath.require(base_dir, volume.file)
        except UnsafePathError as exc:
            raise VolumeBuildError(f"Unsafe volume file path: {volume.file}") from exc
        if not volume_path.exists():
            raise VolumeBuildError(f"Volume file not found: {volume.file}")

        try:
            unsafe = extract_archive(volume_path, out_dir)
        except EXTRACT_ERRORS as exc:
            raise VolumeBuildError(f"Failed to extract {volume.file}: {exc}") from exc
        if unsafe:
            raise VolumeBuildError([m.message for m in unsafe])
        logger.debug("Extracted volume %d: %s", volume.index, volume.file)

    return out_dir
