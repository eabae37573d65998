"""Path sandboxing for every declared relative path (artifact, chunk,
passport, volume, envelope payload, archive entry).

Resolution is purely lexical: nothing is stat'ed and symlinks are not
followed, so the target does not need to exist yet. Rejections are
checked in a fixed order and reported as a kind code, never raised,
except through ``SafePath.require`` for callers that want an exception.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict

_SEGMENT_SPLIT = re.compile(r"[\\/]+")
_DRIVE_ABSOLUTE = re.compile(r"^[A-Za-z]:[\\/]")


class UnsafePathError(ValueError):
    """Raised by ``SafePath.require`` when a declared path is rejected."""

    def __init__(self, code: str, message: str, declared: Any) -> None:
        super().__init__(f"{message}: {declared!r}")
        self.code = code
        self.declared = declared


class PathResolution(BaseModel):
    """Outcome of resolving one declared path against a trusted root.

    ``resolved`` is set iff ``ok``; ``code``/``message`` are set iff not.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    resolved: Path | None = None
    code: str | None = None
    message: str | None = None

    @classmethod
    def accept(cls, resolved: Path) -> PathResolution:
        return cls(ok=True, resolved=resolved)

    @classmethod
    def reject(cls, code: str, message: str) -> PathResolution:
        return cls(ok=False, code=code, message=message)


def is_absolute_declared(declared: str) -> bool:
    """True for POSIX, UNC-ish and drive-letter absolute forms."""
    if declared.startswith(("/", "\\")):
        return True
    return _DRIVE_ABSOLUTE.match(declared) is not None


def _is_within(base: str, candidate: str) -> bool:
    if candidate == base:
        return True
    prefix = base if base.endswith(os.sep) else base + os.sep
    return candidate.startswith(prefix)


class SafePath:
    """Canonicalizes declared relative paths against a trusted root.

    Examples
    --------
    >>> SafePath.resolve("/pkg", "a/./b").resolved
    PosixPath('/pkg/a/b')
    >>> SafePath.resolve("/pkg", "../x").code
    'PATH_TRAVERSAL'
    """

    @staticmethod
    def resolve(base_dir: str | os.PathLike[str], declared: Any) -> PathResolution:
        if not isinstance(declared, str):
            return PathResolution.reject("PATH_NOT_STRING", "Path must be a string")
        if declared.strip() == "":
            return PathResolution.reject("PATH_EMPTY", "Path is empty")
        if "\0" in declared:
            return PathResolution.reject("PATH_NULL_BYTE", "Path contains null byte")
        if is_absolute_declared(declared):
            return PathResolution.reject(
                "PATH_ABSOLUTE", "Absolute paths are not allowed"
            )
        if ".." in _SEGMENT_SPLIT.split(declared):
            return PathResolution.reject(
                "PATH_TRAVERSAL", "Path contains directory traversal (..)"
            )

        base = os.path.normpath(os.path.abspath(os.fspath(base_dir)))
        candidate = os.path.normpath(os.path.join(base, declared))
        if not _is_within(base, candidate):
            return PathResolution.reject(
                "PATH_OUTSIDE_ROOT", "Path escapes the root directory"
            )
        return PathResolution.accept(Path(candidate))

    @classmethod
    def require(cls, base_dir: str | os.PathLike[str], declared: Any) -> Path:
        """Resolve *declared* or raise ``UnsafePathError``."""
        resolution = cls.resolve(base_dir, declared)
        if not resolution.ok or resolution.resolved is None:
            raise UnsafePathError(
                resolution.code or "PATH_INVALID",
                resolution.message or "Unsafe path",
                declared,
            )
        return resolution.resolved
