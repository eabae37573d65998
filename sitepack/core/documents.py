"""Reading whole-file JSON documents (manifest, catalog, headers, ...)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class DocumentReadError(ValueError):
    """A document exists but could not be read or decoded as JSON."""


def read_json_document(path: Path) -> Any:
    """Parse *path* as UTF-8 JSON.

    Raises ``FileNotFoundError`` when the file is absent so callers can
    report "missing" separately from ``DocumentReadError`` ("malformed").
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentReadError(str(exc)) from exc
    try:
        return json.loads(raw)
    except (ValueError, RecursionError) as exc:
        raise DocumentReadError(str(exc)) from exc
