"""Settings for version-trail.

All settings use the VERSION_TRAIL_ environment prefix and cover:
- The default state of the global recording switch
- Snapshot serialization format
- The SQL version store connection
- Logging
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for version-trail.

    Environment variable prefix: VERSION_TRAIL_
    """

    service_name: str = "version-trail"

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    enabled: bool = Field(
        default=True,
        description="Default value of the global recording switch for contexts built from settings.",
    )
    audit_trail_ignored_attributes: list[str] = Field(
        default_factory=lambda: ["updated_at"],
        description="Attributes removed from both sides before diffing audit trail entries.",
    )

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    snapshot_format: Literal["json", "yaml"] = Field(
        default="json",
        description="Snapshot payload format: zlib-compressed JSON or UTF-8 YAML.",
    )
    snapshot_compression_level: int = Field(
        default=6,
        ge=0,
        le=9,
        description="zlib compression level for JSON snapshots.",
    )

    # -------------------------------------------------------------------------
    # SQL version store
    # -------------------------------------------------------------------------

    database_url: str = Field(
        default="sqlite:///./versions.db",
        description="SQLAlchemy URL of the database holding the versions table.",
    )
    database_echo: bool = Field(
        default=False,
        description="Echo SQL statements. Keep off outside development, snapshots may hold sensitive values.",
    )

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    log_level: str = Field(default="INFO", description="Minimum log level.")
    log_format: Literal["json", "console"] = Field(default="json", description="Log renderer.")

    model_config = SettingsConfigDict(env_prefix="VERSION_TRAIL_")
