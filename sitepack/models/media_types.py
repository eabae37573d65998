"""Artifact media types and how each one is validated.

Dispatch is a closed set of families: NDJSON record streams, single JSON
documents, and everything else (reported as an unknown media type).
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class MediaFamily(str, Enum):
    NDJSON = "ndjson"
    JSON = "json"
    UNKNOWN = "unknown"


class MediaKind(BaseModel):
    """Validation plan for one media type.

    ``checks_asset_blobs`` marks the NDJSON kind whose records reference
    blob and chunk files on disk.
    """

    model_config = ConfigDict(frozen=True)

    family: MediaFamily
    schema_name: str | None = None
    checks_asset_blobs: bool = False


ENTITY_GRAPH = "application/vnd.sitepack.entity-graph+ndjson"
ASSET_INDEX = "application/vnd.sitepack.asset-index+ndjson"
CONFIG_KV = "application/vnd.sitepack.config-kv+ndjson"
RECORDSET = "application/vnd.sitepack.recordset+ndjson"
CAPABILITIES = "application/vnd.sitepack.capabilities+json"
TRANSFORM_PLAN = "application/vnd.sitepack.transform-plan+json"
OBJECT_INDEX = "application/vnd.sitepack.object-index+json"
OBJECT_PASSPORT = "application/vnd.sitepack.object-passport+json"

UNKNOWN_KIND = MediaKind(family=MediaFamily.UNKNOWN)

MEDIA_KINDS: dict[str, MediaKind] = {
    ENTITY_GRAPH: MediaKind(family=MediaFamily.NDJSON, schema_name="entity"),
    ASSET_INDEX: MediaKind(
        family=MediaFamily.NDJSON, schema_name="asset-index", checks_asset_blobs=True
    ),
    CONFIG_KV: MediaKind(family=MediaFamily.NDJSON, schema_name="config-kv"),
    RECORDSET: MediaKind(family=MediaFamily.NDJSON, schema_name="recordset"),
    CAPABILITIES: MediaKind(family=MediaFamily.JSON, schema_name="capabilities"),
    TRANSFORM_PLAN: MediaKind(family=MediaFamily.JSON, schema_name="transform-plan"),
    OBJECT_INDEX: MediaKind(family=MediaFamily.JSON, schema_name="object-index"),
    OBJECT_PASSPORT: MediaKind(family=MediaFamily.JSON, schema_name="object-passport"),
}


def classify(media_type: str | None) -> MediaKind:
    """Return the validation plan for *media_type* (unknown if unlisted)."""
    if media_type is None:
        return UNKNOWN_KIND
    return MEDIA_KINDS.get(media_type, UNKNOWN_KIND)
