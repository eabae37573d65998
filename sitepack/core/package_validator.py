"""Package validator: the top-level orchestrator for an unpacked package.

Sequence per run:
    1. Load manifest and catalog (problems are reported, never fatal).
    2. Cross-check manifest membership against the catalog.
    3. Resolve the optional profile into a selection of artifact ids.
    4. Check each catalog artifact in catalog order: sandboxed path, stat,
       size, digest, then media-type dispatch.
    5. Run the object-graph pass.

``build()`` returns the still-open ``ReportBuilder`` so a caller (the
volume-set validator) can fold in its own findings before closing;
``validate()`` closes and persists it.
"""

from __future__ import annotations

import logging
import stat
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

from sitepack import __version__
from sitepack.config import SitepackConfig, config as default_config
from sitepack.core.asset_blobs import asset_record_hook
from sitepack.core.documents import DocumentReadError, read_json_document
from sitepack.core.hasher import sha256_file
from sitepack.core.ndjson import RecordStreamValidator
from sitepack.core.object_graph import ObjectGraphValidator
from sitepack.core.safe_path import SafePath
from sitepack.core.schema_gate import SchemaGate, load_schema_gate
from sitepack.models.documents import (
    ArtifactDescriptor,
    Catalog,
    Manifest,
    ProfilesShape,
)
from sitepack.models.media_types import MediaFamily, classify
from sitepack.models.report import (
    ArtifactResult,
    ArtifactStatus,
    Detail,
    Message,
    ToolInfo,
    ValidationReport,
)
from sitepack.reporting.builder import ReportBuilder
from sitepack.reporting.writer import write_report

logger = logging.getLogger(__name__)

MANIFEST_FILE = "sitepack.manifest.json"
CATALOG_FILE = "sitepack.catalog.json"


# ---------------------------------------------------------------------------
# Profile selection
# ---------------------------------------------------------------------------

class ProfileSelection(BaseModel):
    """Which artifact ids a run covers.

    ``selected`` is ``None`` when every catalog artifact is in scope.
    ``absent_ids`` are selected ids that the catalog does not contain.
    """

    model_config = ConfigDict(frozen=True)

    selected: frozenset[str] | None = None
    absent_ids: list[str] = []
    messages: list[Message] = []

    def includes(self, artifact_id: str | None) -> bool:
        if self.selected is None:
            return True
        return artifact_id is not None and artifact_id in self.selected


def resolve_profile(
    manifest: Manifest | None,
    catalog_ids: set[str],
    profile: str | None,
) -> ProfileSelection:
    """Turn a profile name into an artifact selection.

    A flat ``profiles`` list only gates membership: the selection stays
    the manifest's artifact list. A ``profiles`` map selects exactly the
    listed ids, each of which must exist in the catalog.
    """
    if not profile:
        return ProfileSelection()

    if manifest is None:
        return ProfileSelection(
            messages=[
                Message.error(
                    "PROFILE_NO_MANIFEST",
                    "Cannot apply profile filter without manifest",
                    profile=profile,
                )
            ]
        )

    fallback = frozenset(manifest.artifacts)
    shape = manifest.profiles_shape

    if shape == ProfilesShape.ABSENT:
        return ProfileSelection(
            selected=fallback,
            messages=[
                Message.error(
                    "PROFILE_FIELD_MISSING",
                    f"Profile '{profile}' requested but manifest.profiles is not declared",
                    profile=profile,
                )
            ],
        )

    if shape == ProfilesShape.LIST:
        messages = []
        if profile not in manifest.profile_names:
            messages.append(
                Message.error(
                    "PROFILE_NOT_DECLARED",
                    f"Profile '{profile}' is not listed in manifest.profiles",
                    profile=profile,
                )
            )
        return ProfileSelection(selected=fallback, messages=messages)

    if shape == ProfilesShape.MAP:
        if profile not in manifest.profile_map:
            return ProfileSelection(
                selected=fallback,
                messages=[
                    Message.error(
                        "PROFILE_NOT_DECLARED",
                        f"Profile '{profile}' is not a key of manifest.profiles",
                        profile=profile,
                    )
                ],
            )
        ids = manifest.profile_map[profile]
        if ids is None:
            return ProfileSelection(
                selected=fallback,
                messages=[
                    Message.error(
                        "PROFILE_MAP_INVALID",
                        f"manifest.profiles['{profile}'] must be an array of artifact.id",
                        profile=profile,
                    )
                ],
            )
        absent = [i for i in dict.fromkeys(ids) if i not in catalog_ids]
        return ProfileSelection(
            selected=frozenset(ids),
            absent_ids=absent,
            messages=[
                Message.error(
                    "PROFILE_ARTIFACT_MISSING",
                    f"Artifact '{i}' is missing in catalog for profile '{profile}'",
                    artifactId=i,
                    profile=profile,
                )
                for i in absent
            ],
        )

    return ProfileSelection(
        selected=fallback,
        messages=[
            Message.error(
                "PROFILE_FIELD_INVALID",
                "manifest.profiles has an invalid type",
                profile=profile,
            )
        ],
    )


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------

class PackageValidator:
    """Validates an unpacked package directory.

    Parameters
    ----------
    gate:
        Schema capability; defaults to the configured (or bundled) schemas.
    settings:
        Configuration; defaults to the module singleton.
    """

    def __init__(
        self,
        gate: SchemaGate | None = None,
        settings: SitepackConfig | None = None,
    ) -> None:
        self.settings = settings or default_config
        self.gate = gate or load_schema_gate(self.settings.schemas_dir)
        self.tool = ToolInfo(name=self.settings.tool_name, version=__version__)
        self._streams = RecordStreamValidator(self.gate)

    def validate(
        self,
        package_root: Path,
        profile: str | None = None,
        skip_digest: bool = False,
        check_blobs: bool = False,
    ) -> ValidationReport:
        """Validate, close and persist the report under ``<root>/reports``."""
        builder = self.build(package_root, profile, skip_digest, check_blobs)
        report = builder.close()
        write_report(report, Path(package_root), self.settings)
        return report

    def build(
        self,
        package_root: Path,
        profile: str | None = None,
        skip_digest: bool = False,
        check_blobs: bool = False,
    ) -> ReportBuilder:
        """Run every check and return the open builder (nothing persisted)."""
        root = Path(package_root)
        builder = ReportBuilder(self.tool, "package", str(package_root))
        logger.info("Validating package %s", root)

        manifest_raw = self._load_top_level(
            builder, root / MANIFEST_FILE, "MANIFEST", "manifest"
        )
        catalog_raw = self._load_top_level(
            builder, root / CATALOG_FILE, "CATALOG", "catalog"
        )
        manifest = (
            Manifest.from_document(manifest_raw) if manifest_raw is not None else None
        )
        catalog = Catalog.from_document(catalog_raw)
        builder.set_artifacts_total(len(catalog.artifacts))

        catalog_ids = catalog.ids()
        self._cross_check(builder, manifest, catalog)

        selection = resolve_profile(manifest, catalog_ids, profile)
        builder.extend(selection.messages)
        for _ in selection.absent_ids:
            builder.mark_skipped()

        validated_ids: set[str] = set()
        for descriptor in catalog.artifacts:
            if not selection.includes(descriptor.id):
                builder.mark_skipped()
                builder.add_artifact(
                    self._result(descriptor, status=ArtifactStatus.SKIPPED)
                )
                continue

            builder.mark_validated()
            if descriptor.id is not None:
                validated_ids.add(descriptor.id)
            builder.add_artifact(
                self._check_artifact(builder, root, descriptor, skip_digest, check_blobs)
            )

        graph = ObjectGraphValidator(root, self.gate)
        builder.extend(graph.validate(catalog, validated_ids))

        logger.info(
            "Package %s: %d error(s), %d warning(s)",
            root,
            builder.error_count,
            builder.warning_count,
        )
        return builder

    # ------------------------------------------------------------------
    # Top-level documents
    # ------------------------------------------------------------------

    def _load_top_level(
        self, builder: ReportBuilder, path: Path, prefix: str, schema_name: str
    ) -> Any:
        """Read and schema-check one root document; ``None`` if unusable."""
        try:
            raw = read_json_document(path)
        except FileNotFoundError:
            builder.error(f"{prefix}_MISSING", f"{path.name} not found", path=str(path))
            return None
        except DocumentReadError as exc:
            builder.error(
                f"{prefix}_PARSE_ERROR",
                f"Failed to read {schema_name}: {exc}",
                path=str(path),
            )
            return None

        verdict = self.gate.validate(schema_name, raw)
        for error in verdict.errors:
            builder.error(f"{prefix}_SCHEMA_ERROR", error, path=str(path))
        return raw

    @staticmethod
    def _cross_check(
        builder: ReportBuilder, manifest: Manifest | None, catalog: Catalog
    ) -> None:
        manifest_ids = manifest.artifacts if manifest is not None else []
        catalog_ids = catalog.ids()
        for artifact_id in manifest_ids:
            if artifact_id not in catalog_ids:
                builder.error(
                    "MANIFEST_ARTIFACT_MISSING",
                    f"Artifact '{artifact_id}' is listed in manifest but missing in catalog",
                    artifactId=artifact_id,
                )
        listed = set(manifest_ids)
        for descriptor in catalog.artifacts:
            if descriptor.id not in listed:
                builder.warning(
                    "CATALOG_ARTIFACT_EXTRA",
                    f"Artifact '{descriptor.id}' is missing from manifest.artifacts",
                    artifactId=descriptor.id,
                )

    # ------------------------------------------------------------------
    # One artifact
    # ------------------------------------------------------------------

    @staticmethod
    def _result(
        descriptor: ArtifactDescriptor,
        status: ArtifactStatus | None = None,
        details: list[Detail] | None = None,
        size_actual: int | None = None,
        digest_actual: str | None = None,
    ) -> ArtifactResult:
        details = details or []
        return ArtifactResult(
            id=descriptor.id,
            media_type=descriptor.media_type,
            path=descriptor.declared_path,
            size_expected=descriptor.size,
            size_actual=size_actual,
            digest_expected=descriptor.digest,
            digest_actual=digest_actual,
            status=status or ArtifactResult.derive_status(details),
            details=details,
        )

    def _check_artifact(
        self,
        builder: ReportBuilder,
        root: Path,
        descriptor: ArtifactDescriptor,
        skip_digest: bool,
        check_blobs: bool,
    ) -> ArtifactResult:
        logger.debug("Checking artifact %s (%s)", descriptor.id, descriptor.media_type)
        details: list[Detail] = []

        resolution = SafePath.resolve(root, descriptor.path)
        if not resolution.ok or resolution.resolved is None:
            details.append(
                Detail.error(
                    resolution.code or "PATH_INVALID", resolution.message or "Unsafe path"
                )
            )
            return self._result(descriptor, details=details)
        target = resolution.resolved

        try:
            info = target.stat()
        except OSError:
            details.append(
                Detail.error(
                    "FILE_MISSING", f"Artifact file not found: {descriptor.declared_path}"
                )
            )
            return self._result(descriptor, details=details)
        if not stat.S_ISREG(info.st_mode):
            details.append(
                Detail.error("FILE_NOT_REGULAR", "Artifact is not a regular file")
            )
            return self._result(descriptor, details=details)

        if descriptor.size is not None and info.st_size != descriptor.size:
            details.append(
                Detail.error(
                    "SIZE_MISMATCH",
                    f"File size mismatch: {info.st_size} != {descriptor.size}",
                )
            )

        digest_actual = None
        if descriptor.digest and not skip_digest:
            try:
                digest_actual = sha256_file(target, self.settings.digest_chunk_size)
            except OSError as exc:
                logger.warning("Digest failed for %s: %s", target, exc)
                details.append(
                    Detail.error("DIGEST_ERROR", f"Digest calculation error: {exc}")
                )
            else:
                if digest_actual != descriptor.digest:
                    details.append(
                        Detail.error(
                            "DIGEST_MISMATCH",
                            f"Digest mismatch: {digest_actual} != {descriptor.digest}",
                        )
                    )

        details.extend(self._check_content(builder, root, target, descriptor, check_blobs))
        return self._result(
            descriptor,
            details=details,
            size_actual=info.st_size,
            digest_actual=digest_actual,
        )

    def _check_content(
        self,
        builder: ReportBuilder,
        root: Path,
        target: Path,
        descriptor: ArtifactDescriptor,
        check_blobs: bool,
    ) -> list[Detail]:
        """Media-type dispatch over the closed set of families."""
        kind = classify(descriptor.media_type)

        if kind.family == MediaFamily.NDJSON and kind.schema_name:
            hook = asset_record_hook(
                root, kind, check_blobs, self.settings.digest_chunk_size
            )
            outcome = self._streams.validate(target, kind.schema_name, on_record=hook)
            builder.add_ndjson_lines(outcome.lines_validated)
            return list(outcome.details)

        if kind.family == MediaFamily.JSON and kind.schema_name:
            try:
                document = read_json_document(target)
            except (FileNotFoundError, DocumentReadError) as exc:
                return [
                    Detail.error(
                        "JSON_ARTIFACT_PARSE_ERROR", f"Failed to read JSON artifact: {exc}"
                    )
                ]
            verdict = self.gate.validate(kind.schema_name, document)
            return [Detail.error("JSON_ARTIFACT_SCHEMA_ERROR", e) for e in verdict.errors]

        return [
            Detail.warning(
                "UNKNOWN_MEDIA_TYPE", f"Unknown mediaType: {descriptor.media_type}"
            )
        ]
