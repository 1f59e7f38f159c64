"""Process-wide fixture settings.

Uses ``pydantic-settings`` for environment-based configuration with a
``.env`` file or environment variables.

Environment variables:
    SQLFIXTURE_DATA_DIR              – default fixture folder, relative to cwd  (default: testData)
    SQLFIXTURE_DEFAULT_DATASET       – fixture applied when none is given        (default: fixture.xml)
    SQLFIXTURE_CONFIG_FILE           – connection properties file on sys.path    (default: sqlfixture.properties)
    SQLFIXTURE_DDL_FILE              – DDL used by ``sqlfixture-create``         (default: create_db_content.ddl)
    SQLFIXTURE_DUMP_DATASET          – log every loaded fixture document         (default: false)
    SQLFIXTURE_LOCK_TIMEOUT          – seconds the driver waits for a lock       (default: 5.0)
    SQLFIXTURE_ECHO_SQL              – log every SQL statement (SQLAlchemy echo) (default: false)
    SQLFIXTURE_ENFORCE_FOREIGN_KEYS  – PRAGMA foreign_keys=ON for SQLite         (default: true)
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FixtureSettings(BaseSettings):
    """Read-only toggles set by the surrounding environment."""

    model_config = SettingsConfigDict(
        env_prefix="SQLFIXTURE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    data_dir: str = Field(default="testData", description="Default fixture folder, relative to the working directory.")
    default_dataset: str = Field(default="fixture.xml", description="Fixture document applied when none is set.")
    config_file: str = Field(default="sqlfixture.properties", description="Connection properties file looked up on sys.path.")
    ddl_file: str = Field(default="create_db_content.ddl", description="DDL file used to bootstrap the database.")

    # --- Diagnostics ---
    dump_dataset: bool = Field(default=False, description="Log the content of every loaded fixture document.")
    echo_sql: bool = Field(default=False, description="Log every statement sent to the database.")

    # --- Driver-level knobs ---
    lock_timeout: float = Field(default=5.0, ge=0, description="Seconds the driver waits for a lock before failing.")
    enforce_foreign_keys: bool = Field(default=True, description="Turn on foreign key enforcement for SQLite.")
