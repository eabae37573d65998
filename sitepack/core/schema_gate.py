"""Schema gate: validates parsed documents against the named schema set.

Validators only see the ``SchemaGate`` protocol. ``JsonSchemaGate`` is the
concrete gate: Draft 2020-12 via ``jsonschema``, with every schema held in
one ``referencing.Registry`` under its ``$id`` so cross-schema ``$ref``s
resolve without network access.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

from jsonschema import Draft202012Validator
from pydantic import BaseModel, ConfigDict
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

logger = logging.getLogger(__name__)

SCHEMA_NAMES: tuple[str, ...] = (
    "manifest",
    "catalog",
    "entity",
    "asset-index",
    "config-kv",
    "recordset",
    "capabilities",
    "transform-plan",
    "object-index",
    "object-passport",
    "envelope",
    "volume-set",
)

BUNDLED_SCHEMAS_DIR = Path(__file__).resolve().parent.parent / "schemas"


class SchemaLoadError(RuntimeError):
    """Raised when the schema directory or one of its documents is unusable."""


class SchemaVerdict(BaseModel):
    """Outcome of validating one document: ``errors`` is empty iff ``valid``."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    errors: list[str] = []

    @classmethod
    def passed(cls) -> SchemaVerdict:
        return cls(valid=True)

    @classmethod
    def failed(cls, errors: list[str]) -> SchemaVerdict:
        return cls(valid=False, errors=errors)


class SchemaGate(Protocol):
    """Capability consumed by every validator."""

    def validate(self, schema_name: str, document: Any) -> SchemaVerdict:
        ...


def schema_file_name(name: str) -> str:
    return f"{name}.schema.json"


def _instance_pointer(error: Any) -> str:
    """JSON pointer of the failing instance; ``/`` for the document root."""
    return "/" + "/".join(str(part) for part in error.absolute_path)


class JsonSchemaGate:
    """Draft 2020-12 gate over a fixed set of named schemas.

    Parameters
    ----------
    schemas:
        Mapping of schema name (``"manifest"``, ``"asset-index"``, ...) to
        the parsed schema document.

    Examples
    --------
    >>> gate = JsonSchemaGate({"thing": {"type": "object"}})
    >>> gate.validate("thing", []).errors
    ["/ [] is not of type 'object'"]
    """

    def __init__(self, schemas: Mapping[str, dict[str, Any]]) -> None:
        registry: Registry = Registry()
        for name, schema in schemas.items():
            uri = schema.get("$id") or schema_file_name(name)
            registry = registry.with_resource(
                uri,
                Resource.from_contents(schema, default_specification=DRAFT202012),
            )
        self._validators = {
            name: Draft202012Validator(schema, registry=registry)
            for name, schema in schemas.items()
        }

    @classmethod
    def from_directory(
        cls, schemas_dir: Path, names: tuple[str, ...] = SCHEMA_NAMES
    ) -> JsonSchemaGate:
        """Load ``<name>.schema.json`` for every name in *names*."""
        schemas_dir = Path(schemas_dir)
        if not schemas_dir.is_dir():
            raise SchemaLoadError(f"Schemas directory not found: {schemas_dir}")

        schemas: dict[str, dict[str, Any]] = {}
        for name in names:
            path = schemas_dir / schema_file_name(name)
            try:
                schemas[name] = json.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise SchemaLoadError(f"Schema file not found: {path}") from exc
            except (OSError, ValueError) as exc:
                raise SchemaLoadError(f"Failed to load schema {path}: {exc}") from exc

        logger.debug("Loaded %d schemas from %s", len(schemas), schemas_dir)
        return cls(schemas)

    @classmethod
    def bundled(cls) -> JsonSchemaGate:
        """The schema set shipped with the package."""
        return cls.from_directory(BUNDLED_SCHEMAS_DIR)

    @property
    def names(self) -> list[str]:
        return sorted(self._validators)

    def validate(self, schema_name: str, document: Any) -> SchemaVerdict:
        validator = self._validators.get(schema_name)
        if validator is None:
            return SchemaVerdict.failed([f"Unknown schema: {schema_name}"])

        errors = sorted(
            validator.iter_errors(document),
            key=lambda e: "/".join(str(p) for p in e.absolute_path),
        )
        if not errors:
            return SchemaVerdict.passed()
        return SchemaVerdict.failed(
            [f"{_instance_pointer(e)} {e.message}" for e in errors]
        )


def load_schema_gate(schemas_dir: Path | None = None) -> JsonSchemaGate:
    """Gate over *schemas_dir*, or over the bundled schemas when ``None``."""
    if schemas_dir is None:
        return JsonSchemaGate.bundled()
    return JsonSchemaGate.from_directory(schemas_dir)
