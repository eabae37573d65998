"""Shared test fixtures for Sitepack."""

from __future__ import annotations

import json
import struct
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from sitepack.config import SitepackConfig
from sitepack.core.hasher import sha256_hex
from sitepack.core.schema_gate import JsonSchemaGate

_DROP = object()


@pytest.fixture(scope="session")
def gate() -> JsonSchemaGate:
    """Provide the bundled schema gate (loaded once per session)."""
    return JsonSchemaGate.bundled()


@pytest.fixture
def settings() -> SitepackConfig:
    """Provide a config that ignores the caller's environment and .env."""
    return SitepackConfig(_env_file=None)


@pytest.fixture
def write_json() -> Callable[[Path, Any], Path]:
    """Write a JSON document (two-space indented) and return its path."""

    def _write(path: Path, document: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Package factory
# ---------------------------------------------------------------------------


@pytest.fixture
def make_package(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture: lay out an unpacked package on disk.

    ``files`` maps relative paths to contents. ``artifacts`` lists
    ``(id, path, media_type)``; catalog ``size`` and ``digest`` are
    computed from the written file. ``overrides`` patches catalog entries
    by artifact id (use ``DROP`` from the fixture to delete a key).
    ``manifest`` replaces the generated manifest entirely;
    ``manifest_extra`` merges into it.
    """

    def _factory(
        files: dict[str, str | bytes] | None = None,
        artifacts: list[tuple[str, str, str]] | None = None,
        name: str = "pkg",
        overrides: dict[str, dict[str, Any]] | None = None,
        manifest: dict[str, Any] | None = None,
        manifest_extra: dict[str, Any] | None = None,
        write_manifest: bool = True,
        write_catalog: bool = True,
    ) -> Path:
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)

        for rel_path, content in (files or {}).items():
            target = root / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            data = content.encode("utf-8") if isinstance(content, str) else content
            target.write_bytes(data)

        entries: list[dict[str, Any]] = []
        for artifact_id, rel_path, media_type in artifacts or []:
            entry: dict[str, Any] = {
                "id": artifact_id,
                "mediaType": media_type,
                "path": rel_path,
            }
            source = root / rel_path
            if source.is_file():
                data = source.read_bytes()
                entry["size"] = len(data)
                entry["digest"] = f"sha256:{sha256_hex(data)}"
            for key, value in (overrides or {}).get(artifact_id, {}).items():
                if value is _DROP:
                    entry.pop(key, None)
                else:
                    entry[key] = value
            entries.append(entry)

        if manifest is None:
            manifest = {
                "spec": {"name": "sitepack", "version": "0.4.0"},
                "package": {"id": name},
                "artifacts": [a[0] for a in artifacts or []],
            }
        manifest = {**manifest, **(manifest_extra or {})}

        if write_manifest:
            (root / "sitepack.manifest.json").write_text(
                json.dumps(manifest, indent=2), encoding="utf-8"
            )
        if write_catalog:
            (root / "sitepack.catalog.json").write_text(
                json.dumps({"artifacts": entries}, indent=2), encoding="utf-8"
            )
        return root

    _factory.DROP = _DROP  # type: ignore[attr-defined]
    return _factory


# ---------------------------------------------------------------------------
# Damaged zip volumes
# ---------------------------------------------------------------------------

_LOCAL_HEADER = b"PK\x03\x04"
_CENTRAL_HEADER = b"PK\x01\x02"


@pytest.fixture
def damaged_zip() -> Callable[..., Path]:
    """Factory fixture: write a deflated zip whose first member is unreadable.

    ``damage`` is one of:
      - ``"deflate"``: bytes inside the compressed stream are flipped
      - ``"encrypted"``: the encryption flag bit is set
      - ``"method"``: the compression method is an unknown id (99)

    The archive directory stays intact, so the file opens as a zip and
    only reading the member fails.
    """

    def _factory(path: Path, entries: dict[str, bytes], damage: str) -> Path:
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, data in entries.items():
                zf.writestr(name, data)

        data = bytearray(path.read_bytes())
        assert data[:4] == _LOCAL_HEADER
        central = data.find(_CENTRAL_HEADER)

        if damage == "deflate":
            name_len = struct.unpack_from("<H", data, 26)[0]
            extra_len = struct.unpack_from("<H", data, 28)[0]
            compressed_len = struct.unpack_from("<I", data, 18)[0]
            start = 30 + name_len + extra_len
            assert compressed_len >= 16
            for offset in range(start + 4, start + 12):
                data[offset] ^= 0xFF
        elif damage == "encrypted":
            data[6] |= 0x01
            data[central + 8] |= 0x01
        elif damage == "method":
            struct.pack_into("<H", data, 8, 99)
            struct.pack_into("<H", data, central + 10, 99)
        else:
            raise ValueError(f"unknown damage: {damage}")

        path.write_bytes(bytes(data))
        return path

    return _factory
