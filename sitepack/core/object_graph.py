"""Cross-reference checks between object indexes, passports and the catalog.

Runs after the per-artifact pass. Documents the artifact pass already
validated are not schema-checked again; they are only cross-referenced.
"""

from __future__ import annotations

import logging
from pathlib import Path

from sitepack.core.documents import DocumentReadError, read_json_document
from sitepack.core.safe_path import SafePath
from sitepack.core.schema_gate import SchemaGate
from sitepack.models.documents import (
    ArtifactDescriptor,
    Catalog,
    ObjectIndex,
    ObjectIndexEntry,
    ObjectPassport,
    non_blank,
)
from sitepack.models.media_types import OBJECT_INDEX
from sitepack.models.report import Message

logger = logging.getLogger(__name__)


class ObjectGraphValidator:
    """Checks every object-index artifact in a catalog.

    Parameters
    ----------
    package_root:
        Trusted root that index and passport paths resolve against.
    gate:
        Schema capability for the ``object-index`` and ``object-passport``
        schemas.
    """

    def __init__(self, package_root: Path, gate: SchemaGate) -> None:
        self.package_root = Path(package_root)
        self._gate = gate

    def validate(self, catalog: Catalog, validated_ids: set[str]) -> list[Message]:
        """Return every graph inconsistency found; empty if the catalog has no
        object index."""
        indexes = [a for a in catalog.artifacts if a.media_type == OBJECT_INDEX]
        if not indexes:
            return []

        messages: list[Message] = []
        artifact_ids = catalog.ids()
        by_path = catalog.by_path()
        for artifact in indexes:
            messages.extend(
                self._check_index(artifact, artifact_ids, by_path, validated_ids)
            )
        logger.debug("Object graph: %d finding(s)", len(messages))
        return messages

    # ------------------------------------------------------------------
    # Object index
    # ------------------------------------------------------------------

    def _check_index(
        self,
        artifact: ArtifactDescriptor,
        artifact_ids: set[str],
        by_path: dict[str, ArtifactDescriptor],
        validated_ids: set[str],
    ) -> list[Message]:
        declared = artifact.declared_path
        if not non_blank(declared):
            return [Message.error("OBJECT_INDEX_PATH_MISSING", "Object index path is missing")]

        resolution = SafePath.resolve(self.package_root, declared)
        if not resolution.ok or resolution.resolved is None:
            return [
                Message.error(
                    resolution.code or "PATH_INVALID",
                    resolution.message or "Unsafe path",
                    path=declared,
                )
            ]

        try:
            raw = read_json_document(resolution.resolved)
        except FileNotFoundError:
            return [
                Message.error(
                    "OBJECT_INDEX_MISSING", "Object index file not found", path=declared
                )
            ]
        except DocumentReadError as exc:
            return [
                Message.error(
                    "OBJECT_INDEX_PARSE_ERROR",
                    f"Failed to read object index: {exc}",
                    path=declared,
                )
            ]

        messages: list[Message] = []
        if artifact.id not in validated_ids:
            verdict = self._gate.validate("object-index", raw)
            messages.extend(
                Message.error("OBJECT_INDEX_SCHEMA_ERROR", error, path=declared)
                for error in verdict.errors
            )

        for entry in ObjectIndex.from_document(raw).objects:
            messages.extend(self._check_object(entry, artifact_ids, by_path, validated_ids))
        return messages

    # ------------------------------------------------------------------
    # One object
    # ------------------------------------------------------------------

    def _check_object(
        self,
        entry: ObjectIndexEntry | None,
        artifact_ids: set[str],
        by_path: dict[str, ArtifactDescriptor],
        validated_ids: set[str],
    ) -> list[Message]:
        if entry is None:
            return [
                Message.error(
                    "OBJECT_INDEX_ENTRY_INVALID", "Object index entry must be an object"
                )
            ]
        object_id = entry.id
        passport_path = entry.passport_path
        if not non_blank(object_id):
            return [
                Message.error(
                    "OBJECT_INDEX_ENTRY_INVALID", "Object id is missing or invalid"
                )
            ]
        if not non_blank(passport_path):
            return [
                Message.error(
                    "OBJECT_PASSPORT_PATH_MISSING",
                    f"passportPath is missing for object '{object_id}'",
                )
            ]

        messages: list[Message] = []
        passport_artifact = by_path.get(passport_path)
        if passport_artifact is None:
            messages.append(
                Message.error(
                    "OBJECT_PASSPORT_NOT_IN_CATALOG",
                    f"passportPath is not listed in catalog: {passport_path}",
                    objectId=object_id,
                    passportPath=passport_path,
                )
            )

        resolution = SafePath.resolve(self.package_root, passport_path)
        if not resolution.ok or resolution.resolved is None:
            messages.append(
                Message.error(
                    resolution.code or "PATH_INVALID",
                    resolution.message or "Unsafe path",
                    objectId=object_id,
                    passportPath=passport_path,
                )
            )
            return messages

        try:
            raw = read_json_document(resolution.resolved)
        except FileNotFoundError:
            messages.append(
                Message.error(
                    "OBJECT_PASSPORT_MISSING",
                    "Object passport file not found",
                    objectId=object_id,
                    passportPath=passport_path,
                )
            )
            return messages
        except DocumentReadError as exc:
            messages.append(
                Message.error(
                    "OBJECT_PASSPORT_PARSE_ERROR",
                    f"Failed to read object passport: {exc}",
                    objectId=object_id,
                    passportPath=passport_path,
                )
            )
            return messages

        passport_artifact_id = passport_artifact.id if passport_artifact is not None else None
        if passport_artifact_id is None or passport_artifact_id not in validated_ids:
            verdict = self._gate.validate("object-passport", raw)
            messages.extend(
                Message.error(
                    "OBJECT_PASSPORT_SCHEMA_ERROR",
                    error,
                    objectId=object_id,
                    passportPath=passport_path,
                )
                for error in verdict.errors
            )

        passport = ObjectPassport.from_document(raw)
        messages.extend(self._identity_checks(object_id, passport))
        messages.extend(self._reference_checks(object_id, passport, artifact_ids))
        return messages

    @staticmethod
    def _identity_checks(object_id: str, passport: ObjectPassport) -> list[Message]:
        """All three identity rules are checked independently."""
        messages: list[Message] = []
        ref_id = passport.object_ref_id
        if passport.id and passport.id != object_id:
            messages.append(
                Message.error(
                    "OBJECT_PASSPORT_ID_MISMATCH",
                    f"Passport id does not match object index id: {passport.id} != {object_id}",
                    objectId=object_id,
                    passportId=passport.id,
                )
            )
        if passport.id and ref_id and passport.id != ref_id:
            messages.append(
                Message.error(
                    "OBJECT_PASSPORT_ID_MISMATCH",
                    f"Passport id does not match objectRef.id: {passport.id} != {ref_id}",
                    objectId=object_id,
                    passportId=passport.id,
                    objectRefId=ref_id,
                )
            )
        if ref_id and ref_id != object_id:
            messages.append(
                Message.error(
                    "OBJECT_PASSPORT_REF_MISMATCH",
                    f"objectRef.id does not match object index id: {ref_id} != {object_id}",
                    objectId=object_id,
                    objectRefId=ref_id,
                )
            )
        return messages

    @staticmethod
    def _reference_checks(
        object_id: str, passport: ObjectPassport, artifact_ids: set[str]
    ) -> list[Message]:
        messages: list[Message] = []
        for artifact_id in passport.artifacts:
            if not non_blank(artifact_id):
                messages.append(
                    Message.error(
                        "OBJECT_PASSPORT_ARTIFACT_INVALID",
                        "Passport artifacts entry must be a string",
                        objectId=object_id,
                    )
                )
            elif artifact_id not in artifact_ids:
                messages.append(
                    Message.error(
                        "OBJECT_PASSPORT_ARTIFACT_MISSING",
                        f"Passport artifact is missing from catalog: {artifact_id}",
                        objectId=object_id,
                        artifactId=artifact_id,
                    )
                )

        for selector in passport.datasets:
            if selector is None:
                messages.append(
                    Message.error(
                        "OBJECT_PASSPORT_DATASET_INVALID",
                        "Dataset selector must be an object",
                        objectId=object_id,
                    )
                )
            elif not non_blank(selector.artifact_id):
                messages.append(
                    Message.error(
                        "OBJECT_PASSPORT_DATASET_INVALID",
                        "datasetSelector.artifactId is missing",
                        objectId=object_id,
                    )
                )
            elif selector.artifact_id not in artifact_ids:
                messages.append(
                    Message.error(
                        "OBJECT_PASSPORT_DATASET_MISSING",
                        f"Dataset artifact is missing from catalog: {selector.artifact_id}",
                        objectId=object_id,
                        artifactId=selector.artifact_id,
                    )
                )
        return messages


