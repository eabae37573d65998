"""Typed views over the package's JSON documents.

Every model is built by an explicit ``from_document()`` constructor that
reads only values of the expected JSON type. A field of the wrong type
becomes ``None`` (or an empty default) instead of raising, because the
schema gate already reports structural problems and the validators must
keep going with whatever is usable.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


# ---------------------------------------------------------------------------
# Field coercion helpers
# ---------------------------------------------------------------------------

def as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def as_int(value: Any) -> int | None:
    """JSON integer, or an integral float; booleans are not integers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def as_dict(value: Any) -> dict[str, Any] | None:
    return value if isinstance(value, dict) else None


def as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def non_blank(value: str | None) -> bool:
    return value is not None and value.strip() != ""


# ---------------------------------------------------------------------------
# Manifest and catalog
# ---------------------------------------------------------------------------

class ProfilesShape(str, Enum):
    """How ``manifest.profiles`` was declared."""

    ABSENT = "absent"
    LIST = "list"
    MAP = "map"
    INVALID = "invalid"


class Manifest(BaseModel):
    """``sitepack.manifest.json``: artifact membership and named profiles.

    ``profile_map`` values are ``None`` where the declared value is not an
    array, so a lookup can tell "not declared" from "declared badly".
    """

    model_config = ConfigDict(frozen=True)

    artifacts: list[str] = []
    package_id: str | None = None
    profiles_shape: ProfilesShape = ProfilesShape.ABSENT
    profile_names: list[str] = []
    profile_map: dict[str, list[str] | None] = {}

    @classmethod
    def from_document(cls, raw: Any) -> Manifest:
        doc = as_dict(raw) or {}
        artifacts = [a for a in as_list(doc.get("artifacts")) if isinstance(a, str)]
        package = as_dict(doc.get("package")) or {}

        shape = ProfilesShape.ABSENT
        names: list[str] = []
        mapping: dict[str, list[str] | None] = {}
        if "profiles" in doc:
            profiles = doc["profiles"]
            if isinstance(profiles, list):
                shape = ProfilesShape.LIST
                names = [p for p in profiles if isinstance(p, str)]
            elif isinstance(profiles, dict):
                shape = ProfilesShape.MAP
                for name, ids in profiles.items():
                    if isinstance(ids, list):
                        mapping[name] = [i for i in ids if isinstance(i, str)]
                    else:
                        mapping[name] = None
            else:
                shape = ProfilesShape.INVALID

        return cls(
            artifacts=artifacts,
            package_id=as_str(package.get("id")),
            profiles_shape=shape,
            profile_names=names,
            profile_map=mapping,
        )


class ArtifactDescriptor(BaseModel):
    """One catalog entry. ``path`` keeps the raw declared value so that the
    safe-path check can report non-string paths itself."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    media_type: str | None = None
    path: Any = None
    size: int | None = None
    digest: str | None = None

    @classmethod
    def from_document(cls, raw: Any) -> ArtifactDescriptor:
        doc = as_dict(raw) or {}
        return cls(
            id=as_str(doc.get("id")),
            media_type=as_str(doc.get("mediaType")),
            path=doc.get("path"),
            size=as_int(doc.get("size")),
            digest=as_str(doc.get("digest")),
        )

    @property
    def declared_path(self) -> str | None:
        return self.path if isinstance(self.path, str) else None


class Catalog(BaseModel):
    """``sitepack.catalog.json``: the authoritative artifact list."""

    model_config = ConfigDict(frozen=True)

    artifacts: list[ArtifactDescriptor] = []

    @classmethod
    def from_document(cls, raw: Any) -> Catalog:
        doc = as_dict(raw) or {}
        return cls(
            artifacts=[
                ArtifactDescriptor.from_document(item)
                for item in as_list(doc.get("artifacts"))
            ]
        )

    def ids(self) -> set[str]:
        return {a.id for a in self.artifacts if a.id is not None}

    def by_path(self) -> dict[str, ArtifactDescriptor]:
        return {
            a.declared_path: a
            for a in self.artifacts
            if a.declared_path is not None
        }


# ---------------------------------------------------------------------------
# Asset index records
# ---------------------------------------------------------------------------

class ChunkEntry(BaseModel):
    """One fragment of a chunked asset. ``index`` is ``None`` when the
    declared value is not an integer."""

    model_config = ConfigDict(frozen=True)

    index: int | None = None
    path: str | None = None
    size: int | None = None
    sha256: str | None = None

    @classmethod
    def from_document(cls, raw: dict[str, Any]) -> ChunkEntry:
        return cls(
            index=as_int(raw.get("index")),
            path=as_str(raw.get("path")),
            size=as_int(raw.get("size")),
            sha256=as_str(raw.get("sha256")),
        )


class AssetIndexRecord(BaseModel):
    """One asset-index NDJSON line: a single blob or an assembled blob.

    ``chunks`` is ``None`` for the single-blob form; inside the list,
    ``None`` marks an entry that was not a JSON object.
    """

    model_config = ConfigDict(frozen=True)

    path: str | None = None
    size: int | None = None
    sha256: str | None = None
    chunks: list[ChunkEntry | None] | None = None

    @classmethod
    def from_document(cls, raw: Any) -> AssetIndexRecord:
        doc = as_dict(raw) or {}
        chunks: list[ChunkEntry | None] | None = None
        if isinstance(doc.get("chunks"), list):
            chunks = [
                ChunkEntry.from_document(c) if isinstance(c, dict) else None
                for c in doc["chunks"]
            ]
        sha = as_str(doc.get("sha256"))
        return cls(
            path=as_str(doc.get("path")),
            size=as_int(doc.get("size")),
            sha256=sha.lower() if sha is not None else None,
            chunks=chunks,
        )


# ---------------------------------------------------------------------------
# Object graph
# ---------------------------------------------------------------------------

class ObjectIndexEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = ""
    passport_path: str = ""

    @classmethod
    def from_document(cls, raw: dict[str, Any]) -> ObjectIndexEntry:
        return cls(
            id=as_str(raw.get("id")) or "",
            passport_path=as_str(raw.get("passportPath")) or "",
        )


class ObjectIndex(BaseModel):
    """Object index document; ``None`` entries were not JSON objects."""

    model_config = ConfigDict(frozen=True)

    objects: list[ObjectIndexEntry | None] = []

    @classmethod
    def from_document(cls, raw: Any) -> ObjectIndex:
        doc = as_dict(raw) or {}
        return cls(
            objects=[
                ObjectIndexEntry.from_document(o) if isinstance(o, dict) else None
                for o in as_list(doc.get("objects"))
            ]
        )


class DatasetSelector(BaseModel):
    model_config = ConfigDict(frozen=True)

    artifact_id: str = ""


class ObjectPassport(BaseModel):
    """Identity and references of one logical object.

    An absent ``objectRef`` leaves ``object_ref_id`` as ``None``, which the
    graph check treats as "nothing to compare", never as a mismatch.
    ``artifacts`` holds ``None`` for entries that are not strings and
    ``datasets`` holds ``None`` for selectors that are not objects.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    object_ref_id: str | None = None
    artifacts: list[str | None] = []
    datasets: list[DatasetSelector | None] = []

    @classmethod
    def from_document(cls, raw: Any) -> ObjectPassport:
        doc = as_dict(raw) or {}
        object_ref = as_dict(doc.get("objectRef")) or {}
        return cls(
            id=as_str(doc.get("id")),
            object_ref_id=as_str(object_ref.get("id")),
            artifacts=[as_str(a) for a in as_list(doc.get("artifacts"))],
            datasets=[
                DatasetSelector(artifact_id=as_str(d.get("artifactId")) or "")
                if isinstance(d, dict)
                else None
                for d in as_list(doc.get("datasets"))
            ],
        )


# ---------------------------------------------------------------------------
# Volume sets and envelopes
# ---------------------------------------------------------------------------

class VolumeEncryption(BaseModel):
    model_config = ConfigDict(frozen=True)

    scheme: str | None = None
    envelope_file: str | None = None


class VolumeEntry(BaseModel):
    """One shard of a volume set. A missing or non-integer ``index`` sorts
    as 0."""

    model_config = ConfigDict(frozen=True)

    index: int = 0
    file: str | None = None
    size: int | None = None
    sha256: str | None = None
    encryption: VolumeEncryption | None = None

    @classmethod
    def from_document(cls, raw: dict[str, Any]) -> VolumeEntry:
        encryption = None
        enc = as_dict(raw.get("encryption"))
        if enc is not None:
            encryption = VolumeEncryption(
                scheme=as_str(enc.get("scheme")),
                envelope_file=as_str(enc.get("envelopeFile")),
            )
        sha = as_str(raw.get("sha256"))
        index = as_int(raw.get("index"))
        return cls(
            index=index if index is not None else 0,
            file=as_str(raw.get("file")),
            size=as_int(raw.get("size")),
            sha256=sha.lower() if sha is not None else None,
            encryption=encryption,
        )

    @property
    def is_age_encrypted(self) -> bool:
        return self.encryption is not None and self.encryption.scheme == "age"


class VolumeSetDescriptor(BaseModel):
    """``sitepack.volumes.json``; ``None`` entries were not JSON objects."""

    model_config = ConfigDict(frozen=True)

    volumes: list[VolumeEntry | None] = []

    @classmethod
    def from_document(cls, raw: Any) -> VolumeSetDescriptor:
        doc = as_dict(raw) or {}
        return cls(
            volumes=[
                VolumeEntry.from_document(v) if isinstance(v, dict) else None
                for v in as_list(doc.get("volumes"))
            ]
        )


class EnvelopeHeader(BaseModel):
    """``*.enc.json`` header. Only ``payload.file`` is read here."""

    model_config = ConfigDict(frozen=True)

    payload_file: str | None = None

    @classmethod
    def from_document(cls, raw: Any) -> EnvelopeHeader:
        doc = as_dict(raw) or {}
        payload = as_dict(doc.get("payload")) or {}
        return cls(payload_file=as_str(payload.get("file")))
