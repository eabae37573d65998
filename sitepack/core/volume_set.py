"""Volume-set validator: verify shards, reassemble, validate the package.

A volume set is a package split across several zip files described by
``sitepack.volumes.json``. Shards are checked first; only a clean set is
extracted (in ascending ``index`` order) into a private scratch directory,
which is then validated as an ordinary package. The merged report
describes the volume set and is persisted next to the descriptor.
"""

from __future__ import annotations

import logging
import stat
import tempfile
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from sitepack.config import SitepackConfig, config as default_config
from sitepack.core.archive import EXTRACT_ERRORS, extract_archive
from sitepack.core.documents import DocumentReadError, read_json_document
from sitepack.core.hasher import sha256_file_hex
from sitepack.core.package_validator import PackageValidator
from sitepack.core.safe_path import SafePath
from sitepack.core.schema_gate import SchemaGate
from sitepack.models.documents import VolumeEntry, VolumeSetDescriptor, non_blank
from sitepack.models.report import Level, Message, ValidationReport
from sitepack.reporting.builder import ReportBuilder
from sitepack.reporting.writer import write_report

logger = logging.getLogger(__name__)

VOLUMES_FILE = "sitepack.volumes.json"


class StagedVolume(BaseModel):
    """A shard that passed its checks and is ready to extract."""

    model_config = ConfigDict(frozen=True)

    index: int
    path: Path
    file: str


class DescriptorCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    messages: list[Message] = []
    volumes: list[StagedVolume] = []

    @property
    def has_errors(self) -> bool:
        return any(m.level == Level.ERROR for m in self.messages)


class VolumeSetValidator:
    """Validates a volume-set descriptor and the package it reassembles to.

    Parameters
    ----------
    gate:
        Schema capability, shared with the inner package validation.
    settings:
        Configuration; defaults to the module singleton.
    """

    def __init__(
        self,
        gate: SchemaGate | None = None,
        settings: SitepackConfig | None = None,
    ) -> None:
        self.settings = settings or default_config
        self.packages = PackageValidator(gate, self.settings)
        self.gate = self.packages.gate

    def validate(
        self,
        volumes_path: Path,
        profile: str | None = None,
        skip_digest: bool = False,
        check_blobs: bool = False,
    ) -> ValidationReport:
        volumes_path = Path(volumes_path)
        base_dir = volumes_path.parent
        logger.info("Validating volume set %s", volumes_path)

        check = self.check_descriptor(volumes_path)
        if check.has_errors:
            builder = ReportBuilder(self.packages.tool, "volume-set", str(volumes_path))
            builder.extend(check.messages)
            report = builder.close()
            write_report(report, base_dir, self.settings)
            logger.info(
                "Volume set %s rejected before extraction: %d error(s)",
                volumes_path,
                report.summary.errors,
            )
            return report

        messages = list(check.messages)
        with tempfile.TemporaryDirectory(prefix=self.settings.scratch_prefix) as scratch:
            scratch_root = Path(scratch)
            for volume in sorted(check.volumes, key=lambda v: v.index):
                logger.debug("Extracting volume %d: %s", volume.index, volume.file)
                try:
                    messages.extend(extract_archive(volume.path, scratch_root))
                except EXTRACT_ERRORS as exc:
                    logger.warning("Failed to extract %s: %s", volume.path, exc)
                    messages.append(
                        Message.error(
                            "VOLUME_EXTRACT_ERROR",
                            f"Failed to extract volume: {exc}",
                            file=volume.file,
                        )
                    )

            builder = self.packages.build(
                scratch_root, profile, skip_digest, check_blobs
            )
            builder.extend(messages)
            builder.retarget("volume-set", str(volumes_path))
            report = builder.close()

        write_report(report, base_dir, self.settings)
        return report

    # ------------------------------------------------------------------
    # Descriptor and shard checks
    # ------------------------------------------------------------------

    def check_descriptor(self, volumes_path: Path) -> DescriptorCheck:
        """Load the descriptor and verify every shard it lists."""
        volumes_path = Path(volumes_path)
        try:
            raw = read_json_document(volumes_path)
        except FileNotFoundError:
            return DescriptorCheck(
                messages=[
                    Message.error(
                        "VOLUME_SET_MISSING",
                        "Volume set descriptor not found",
                        path=str(volumes_path),
                    )
                ]
            )
        except DocumentReadError as exc:
            return DescriptorCheck(
                messages=[
                    Message.error(
                        "VOLUME_SET_PARSE_ERROR",
                        f"Failed to read volume set: {exc}",
                        path=str(volumes_path),
                    )
                ]
            )

        messages = [
            Message.error("VOLUME_SET_SCHEMA_ERROR", error, path=str(volumes_path))
            for error in self.gate.validate("volume-set", raw).errors
        ]
        staged: list[StagedVolume] = []
        base_dir = volumes_path.parent
        for entry in VolumeSetDescriptor.from_document(raw).volumes:
            volume = self._check_volume(base_dir, entry, messages)
            if volume is not None:
                staged.append(volume)
        return DescriptorCheck(messages=messages, volumes=staged)

    def _check_volume(
        self,
        base_dir: Path,
        entry: VolumeEntry | None,
        messages: list[Message],
    ) -> StagedVolume | None:
        if entry is None:
            messages.append(
                Message.error("VOLUME_ENTRY_INVALID", "Volume entry must be an object")
            )
            return None
        if not non_blank(entry.file):
            messages.append(
                Message.error(
                    "VOLUME_FILE_INVALID", "Volume file name is missing or invalid"
                )
            )
            return None

        resolution = SafePath.resolve(base_dir, entry.file)
        if not resolution.ok or resolution.resolved is None:
            messages.append(
                Message.error(
                    resolution.code or "PATH_INVALID",
                    resolution.message or "Unsafe path",
                    file=entry.file,
                )
            )
            return None

        try:
            info = resolution.resolved.stat()
        except OSError:
            messages.append(
                Message.error(
                    "VOLUME_FILE_MISSING",
                    f"Volume file not found: {entry.file}",
                    file=entry.file,
                )
            )
            return None
        if not stat.S_ISREG(info.st_mode):
            messages.append(
                Message.error(
                    "VOLUME_FILE_NOT_REGULAR",
                    f"Volume is not a regular file: {entry.file}",
                    file=entry.file,
                )
            )
            return None

        if entry.size is not None and info.st_size != entry.size:
            messages.append(
                Message.error(
                    "VOLUME_SIZE_MISMATCH",
                    f"Volume size mismatch: {info.st_size} != {entry.size}",
                    file=entry.file,
                )
            )

        if entry.sha256 is not None:
            try:
                actual = sha256_file_hex(
                    resolution.resolved, self.settings.digest_chunk_size
                )
            except OSError as exc:
                logger.warning("Digest failed for %s: %s", resolution.resolved, exc)
                messages.append(
                    Message.error(
                        "VOLUME_DIGEST_ERROR",
                        f"Volume digest error: {exc}",
                        file=entry.file,
                    )
                )
            else:
                if actual != entry.sha256:
                    messages.append(
                        Message.error(
                            "VOLUME_DIGEST_MISMATCH",
                            f"Volume digest mismatch: {actual} != {entry.sha256}",
                            file=entry.file,
                        )
                    )

        if entry.is_age_encrypted:
            self._check_encryption(base_dir, entry, messages)

        return StagedVolume(index=entry.index, path=resolution.resolved, file=entry.file)

    @staticmethod
    def _check_encryption(
        base_dir: Path, entry: VolumeEntry, messages: list[Message]
    ) -> None:
        """The envelope must exist, but age volumes are never decrypted."""
        envelope_file = entry.encryption.envelope_file if entry.encryption else None
        if not non_blank(envelope_file):
            messages.append(
                Message.error(
                    "VOLUME_ENVELOPE_MISSING",
                    "encryption.envelopeFile is required for age volumes",
                    file=entry.file,
                )
            )
        else:
            resolution = SafePath.resolve(base_dir, envelope_file)
            if not resolution.ok or resolution.resolved is None:
                messages.append(
                    Message.error(
                        resolution.code or "PATH_INVALID",
                        resolution.message or "Unsafe path",
                        envelopeFile=envelope_file,
                    )
                )
            elif not resolution.resolved.exists():
                messages.append(
                    Message.error(
                        "VOLUME_ENVELOPE_NOT_FOUND",
                        "Envelope file not found",
                        envelopeFile=envelope_file,
                    )
                )

        messages.append(
            Message.error(
                "VOLUME_ENCRYPTION_UNSUPPORTED",
                "Encrypted volumes are not supported by this validator",
                file=entry.file,
            )
        )
