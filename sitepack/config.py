"""Runtime configuration: env-driven via pydantic-settings.

Reads from a .env file and SITEPACK_* environment variables. Validators
take an explicit ``SitepackConfig`` and fall back to the module-level
singleton when none is given.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class SitepackConfig(BaseSettings):
    """Validator configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export SITEPACK_LOG_LEVEL=DEBUG
        export SITEPACK_SCHEMAS_DIR=/opt/sitepack/schemas
        export SITEPACK_WRITE_REPORTS=false
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SITEPACK_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Schema set: None means the schemas bundled with the package
    schemas_dir: Path | None = None

    # Report persistence
    tool_name: str = "sitepack-validate"
    report_dir_name: str = "reports"
    report_file_name: str = "validate.json"
    write_reports: bool = True

    # Volume sets
    scratch_prefix: str = "sitepack-volumes-"
    max_part_size: int = 104857600
    volume_base_name: str = "sitepack"

    # Hashing
    digest_chunk_size: int = 1024 * 1024


# Module-level singleton: import as `from sitepack.config import config`
config = SitepackConfig()
