"""
Pydantic Settings — importer defaults loaded from environment variables.

Every variable is prefixed with ``IMPORTER_`` (e.g. ``IMPORTER_TEMP_DIR``).
Settings are read when an ``ImporterSettings`` is instantiated and then passed
explicitly to whatever needs them; nothing here is process-global.
"""

import tempfile
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MB = 1024 * 1024
GB = 1024 * MB


class ImporterSettings(BaseSettings):
    # ── Content streams ───────────────────────
    TEMP_DIR: Path = Field(default_factory=lambda: Path(tempfile.gettempdir()))
    MAX_MEMORY_INSTANCE: int = Field(default=100 * MB, ge=0)
    MAX_MEMORY_POOL: int = Field(default=1 * GB, ge=0)

    # ── Parsing ───────────────────────────────
    PARSE_ERRORS_SAVE_DIR: Path | None = None

    # ── Logging ───────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    model_config = SettingsConfigDict(
        env_prefix="IMPORTER_",
        env_file=".env",
        extra="ignore",
    )
