"""Unit tests for the typed document views and the JSON document reader."""

from __future__ import annotations

from pathlib import Path

import pytest

from sitepack.core.documents import DocumentReadError, read_json_document
from sitepack.models.documents import (
    ArtifactDescriptor,
    AssetIndexRecord,
    Catalog,
    EnvelopeHeader,
    Manifest,
    ObjectIndex,
    ObjectPassport,
    ProfilesShape,
    VolumeEntry,
    VolumeSetDescriptor,
    as_int,
    non_blank,
)


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


class TestCoercion:
    def test_as_int(self):
        assert as_int(3) == 3
        assert as_int(3.0) == 3
        assert as_int(3.5) is None
        assert as_int("3") is None
        assert as_int(True) is None

    def test_non_blank(self):
        assert non_blank("x")
        assert not non_blank("  ")
        assert not non_blank(None)


# ---------------------------------------------------------------------------
# Manifest / catalog
# ---------------------------------------------------------------------------


class TestManifest:
    def test_profiles_absent(self):
        manifest = Manifest.from_document({"artifacts": ["a"]})
        assert manifest.profiles_shape == ProfilesShape.ABSENT
        assert manifest.artifacts == ["a"]

    def test_profiles_list(self):
        manifest = Manifest.from_document({"artifacts": [], "profiles": ["core", 7]})
        assert manifest.profiles_shape == ProfilesShape.LIST
        assert manifest.profile_names == ["core"]

    def test_profiles_map_keeps_bad_values_as_none(self):
        manifest = Manifest.from_document(
            {"artifacts": [], "profiles": {"core": ["a", "b"], "broken": "a"}}
        )
        assert manifest.profiles_shape == ProfilesShape.MAP
        assert manifest.profile_map == {"core": ["a", "b"], "broken": None}

    def test_profiles_of_another_type(self):
        manifest = Manifest.from_document({"artifacts": [], "profiles": "core"})
        assert manifest.profiles_shape == ProfilesShape.INVALID

    def test_package_id(self):
        manifest = Manifest.from_document({"package": {"id": "demo"}})
        assert manifest.package_id == "demo"

    def test_non_object_document(self):
        manifest = Manifest.from_document(["not", "an", "object"])
        assert manifest.artifacts == []


class TestCatalog:
    def test_descriptor_fields(self):
        descriptor = ArtifactDescriptor.from_document(
            {
                "id": "a",
                "mediaType": "application/x",
                "path": "a.json",
                "size": 12,
                "digest": "sha256:00",
            }
        )
        assert descriptor.id == "a"
        assert descriptor.media_type == "application/x"
        assert descriptor.declared_path == "a.json"
        assert descriptor.size == 12

    def test_non_string_path_is_kept_raw(self):
        descriptor = ArtifactDescriptor.from_document({"id": "a", "path": 5})
        assert descriptor.path == 5
        assert descriptor.declared_path is None

    def test_ids_and_paths(self):
        catalog = Catalog.from_document(
            {
                "artifacts": [
                    {"id": "a", "path": "a.json"},
                    {"path": "anonymous.json"},
                    "garbage",
                ]
            }
        )
        assert len(catalog.artifacts) == 3
        assert catalog.ids() == {"a"}
        assert set(catalog.by_path()) == {"a.json", "anonymous.json"}

    def test_missing_catalog_document(self):
        assert Catalog.from_document(None).artifacts == []


# ---------------------------------------------------------------------------
# Asset index / object graph / volumes
# ---------------------------------------------------------------------------


class TestAssetIndexRecord:
    def test_single_blob(self):
        record = AssetIndexRecord.from_document(
            {"path": "blobs/a", "size": 3, "sha256": "AB" * 32}
        )
        assert record.chunks is None
        assert record.sha256 == "ab" * 32

    def test_chunks_with_non_object_entry(self):
        record = AssetIndexRecord.from_document(
            {"chunks": [{"index": 1, "path": "c1"}, "bad"]}
        )
        assert record.chunks is not None
        assert record.chunks[0].index == 1
        assert record.chunks[1] is None

    def test_non_integer_chunk_index(self):
        record = AssetIndexRecord.from_document({"chunks": [{"index": "1", "path": "c"}]})
        assert record.chunks[0].index is None


class TestObjectGraphModels:
    def test_index_entries(self):
        index = ObjectIndex.from_document(
            {"objects": [{"id": "o1", "passportPath": "p/o1.json"}, 3]}
        )
        assert index.objects[0].passport_path == "p/o1.json"
        assert index.objects[1] is None

    def test_passport_without_object_ref(self):
        passport = ObjectPassport.from_document({"id": "o1"})
        assert passport.object_ref_id is None
        assert passport.artifacts == []

    def test_passport_references(self):
        passport = ObjectPassport.from_document(
            {
                "id": "o1",
                "objectRef": {"id": "o1"},
                "artifacts": ["a", 2],
                "datasets": [{"artifactId": "d"}, "x"],
            }
        )
        assert passport.object_ref_id == "o1"
        assert passport.artifacts == ["a", None]
        assert passport.datasets[0].artifact_id == "d"
        assert passport.datasets[1] is None


class TestVolumeModels:
    def test_missing_index_sorts_as_zero(self):
        assert VolumeEntry.from_document({"file": "v.zip"}).index == 0

    def test_age_encryption(self):
        entry = VolumeEntry.from_document(
            {"index": 1, "file": "v", "encryption": {"scheme": "age"}}
        )
        assert entry.is_age_encrypted
        assert not VolumeEntry.from_document({"index": 1, "file": "v"}).is_age_encrypted

    def test_descriptor_non_object_entries(self):
        descriptor = VolumeSetDescriptor.from_document({"volumes": [{"index": 1}, 7]})
        assert descriptor.volumes[1] is None

    def test_envelope_payload_file(self):
        header = EnvelopeHeader.from_document({"payload": {"file": "data.age"}})
        assert header.payload_file == "data.age"
        assert EnvelopeHeader.from_document({}).payload_file is None


# ---------------------------------------------------------------------------
# Reading documents from disk
# ---------------------------------------------------------------------------


class TestReadJsonDocument:
    def test_reads_document(self, tmp_path: Path):
        path = tmp_path / "doc.json"
        path.write_text('{"a": 1}', encoding="utf-8")
        assert read_json_document(path) == {"a": 1}

    def test_missing_file_raises_file_not_found(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            read_json_document(tmp_path / "absent.json")

    def test_malformed_json(self, tmp_path: Path):
        path = tmp_path / "doc.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DocumentReadError):
            read_json_document(path)

    def test_integer_beyond_conversion_limit(self, tmp_path: Path):
        path = tmp_path / "doc.json"
        path.write_text('{"n": ' + "9" * 5000 + "}", encoding="utf-8")
        with pytest.raises(DocumentReadError):
            read_json_document(path)

    def test_nesting_too_deep(self, tmp_path: Path):
        path = tmp_path / "doc.json"
        path.write_text("[" * 100_000 + "]" * 100_000, encoding="utf-8")
        with pytest.raises(DocumentReadError):
            read_json_document(path)

    def test_invalid_utf8(self, tmp_path: Path):
        path = tmp_path / "doc.json"
        path.write_bytes(b'{"a": "\xff"}')
        with pytest.raises(DocumentReadError):
            read_json_document(path)

    def test_directory_is_unreadable(self, tmp_path: Path):
        with pytest.raises(DocumentReadError):
            read_json_document(tmp_path)
