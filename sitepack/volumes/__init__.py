"""Volume-set create / extract utilities."""

from sitepack.volumes.builder import (
    PackageFile,
    VolumeBuildError,
    VolumeRecord,
    VolumeSetResult,
    collect_package_files,
    create_volumes,
    extract_volumes,
    plan_volumes,
)

__all__ = [
    "PackageFile",
    "VolumeBuildError",
    "VolumeRecord",
    "VolumeSetResult",
    "collect_package_files",
    "create_volumes",
    "extract_volumes",
    "plan_volumes",
]
