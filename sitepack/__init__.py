"""Sitepack: validation and integrity tooling for SitePack packages.

v0.4.0 covers unpacked packages, volume sets and envelope headers:
  - Sandboxed path resolution for every declared path (zip-slip safe)
  - Streaming SHA-256 for artifacts, blobs and chunk reassembly
  - Draft 2020-12 schema gate over the bundled schema set
  - NDJSON record streams with asset blob/chunk checks
  - Object index / passport cross-reference checks
  - Volume-set create, extract and validate
"""

__version__ = "0.4.0"
__description__ = "Validator and volume tools for SitePack packages"

from sitepack.core.envelope_validator import EnvelopeValidator
from sitepack.core.package_validator import PackageValidator
from sitepack.core.volume_set import VolumeSetValidator

__all__ = [
    "PackageValidator",
    "VolumeSetValidator",
    "EnvelopeValidator",
    "__version__",
]
