"""Sitepack data models: all Pydantic v2, all frozen (immutable)."""

from sitepack.models.documents import (
    ArtifactDescriptor,
    AssetIndexRecord,
    Catalog,
    ChunkEntry,
    DatasetSelector,
    EnvelopeHeader,
    Manifest,
    ObjectIndex,
    ObjectIndexEntry,
    ObjectPassport,
    ProfilesShape,
    VolumeEncryption,
    VolumeEntry,
    VolumeSetDescriptor,
)
from sitepack.models.media_types import MediaFamily, MediaKind, classify
from sitepack.models.report import (
    ArtifactResult,
    ArtifactStatus,
    Detail,
    Level,
    Message,
    ReportSummary,
    ReportTarget,
    ToolInfo,
    ValidationReport,
)

__all__ = [
    # documents
    "Manifest",
    "ProfilesShape",
    "Catalog",
    "ArtifactDescriptor",
    "AssetIndexRecord",
    "ChunkEntry",
    "ObjectIndex",
    "ObjectIndexEntry",
    "ObjectPassport",
    "DatasetSelector",
    "VolumeSetDescriptor",
    "VolumeEntry",
    "VolumeEncryption",
    "EnvelopeHeader",
    # media types
    "MediaFamily",
    "MediaKind",
    "classify",
    # report
    "Level",
    "ArtifactStatus",
    "Detail",
    "Message",
    "ArtifactResult",
    "ToolInfo",
    "ReportTarget",
    "ReportSummary",
    "ValidationReport",
]
