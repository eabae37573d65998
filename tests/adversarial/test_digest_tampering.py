"""Adversarial tests: content altered after the catalog was written.

A tampered byte must surface as a digest mismatch wherever the content is
addressed: catalog artifacts, asset blobs, asset chunks and volumes.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from sitepack.config import SitepackConfig
from sitepack.core.hasher import sha256_hex
from sitepack.core.package_validator import PackageValidator
from sitepack.core.schema_gate import JsonSchemaGate
from sitepack.core.volume_set import VolumeSetValidator
from sitepack.models.media_types import ASSET_INDEX, CAPABILITIES
from sitepack.volumes.builder import create_volumes


def _flip_last_byte(path: Path) -> None:
    data = bytearray(path.read_bytes())
    data[-1] ^= 0x01
    path.write_bytes(bytes(data))


@pytest.fixture
def validator(gate: JsonSchemaGate, settings: SitepackConfig) -> PackageValidator:
    return PackageValidator(gate=gate, settings=settings)


class TestArtifactTampering:
    def test_same_size_edit_is_caught_by_digest(
        self, make_package: Callable[..., Path], validator: PackageValidator
    ):
        root = make_package(
            files={"caps.json": '{"spec":"x"}'},
            artifacts=[("caps", "caps.json", CAPABILITIES)],
        )
        (root / "caps.json").write_text('{"spec":"y"}', encoding="utf-8")

        caps = validator.validate(root).artifacts[0]
        assert [d.code for d in caps.details] == ["DIGEST_MISMATCH"]

    def test_skipping_digests_hides_same_size_edit(
        self, make_package: Callable[..., Path], validator: PackageValidator
    ):
        root = make_package(
            files={"caps.json": '{"spec":"x"}'},
            artifacts=[("caps", "caps.json", CAPABILITIES)],
        )
        (root / "caps.json").write_text('{"spec":"y"}', encoding="utf-8")
        assert validator.validate(root, skip_digest=True).summary.errors == 0


class TestAssetTampering:
    @pytest.fixture
    def asset_package(self, make_package: Callable[..., Path]) -> Path:
        blob = b"blob-bytes"
        part1, part2 = b"first-", b"second"
        records = (
            f'{{"path": "blobs/x", "size": {len(blob)}, "sha256": "{sha256_hex(blob)}"}}\n'
            f'{{"sha256": "{sha256_hex(part1 + part2)}", "chunks": ['
            f'{{"index": 2, "path": "chunks/2"}}, {{"index": 1, "path": "chunks/1"}}]}}\n'
        )
        return make_package(
            files={
                "assets.ndjson": records,
                "blobs/x": blob,
                "chunks/1": part1,
                "chunks/2": part2,
            },
            artifacts=[("assets", "assets.ndjson", ASSET_INDEX)],
        )

    def test_untouched_assets_pass(self, asset_package: Path, validator: PackageValidator):
        report = validator.validate(asset_package, check_blobs=True)
        assert report.summary.errors == 0

    def test_blob_tampering(self, asset_package: Path, validator: PackageValidator):
        _flip_last_byte(asset_package / "blobs" / "x")
        assets = validator.validate(asset_package, check_blobs=True).artifacts[0]
        assert [(d.code, d.line) for d in assets.details] == [
            ("ASSET_BLOB_DIGEST_MISMATCH", 1)
        ]

    def test_chunk_tampering_breaks_reassembled_digest(
        self, asset_package: Path, validator: PackageValidator
    ):
        _flip_last_byte(asset_package / "chunks" / "1")
        assets = validator.validate(asset_package, check_blobs=True).artifacts[0]
        assert [(d.code, d.line) for d in assets.details] == [("ASSET_DIGEST_MISMATCH", 2)]


class TestVolumeTampering:
    def test_tampered_volume_is_rejected_before_extraction(
        self,
        make_package: Callable[..., Path],
        tmp_path: Path,
        gate: JsonSchemaGate,
        settings: SitepackConfig,
    ):
        root = make_package(
            files={"caps.json": '{"spec":"x"}'},
            artifacts=[("caps", "caps.json", CAPABILITIES)],
        )
        result = create_volumes(root, tmp_path / "vols", settings=settings)
        _flip_last_byte(tmp_path / "vols" / result.volumes[0].file)

        report = VolumeSetValidator(gate=gate, settings=settings).validate(
            result.descriptor_path
        )
        assert report.codes() == ["VOLUME_DIGEST_MISMATCH"]
        assert report.artifacts == []
