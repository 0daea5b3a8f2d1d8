"""Access-control settings using Pydantic Settings.

Every field can be set through an ``RBAC_``-prefixed environment variable or
a ``.env`` file:

- RBAC_ENVIRONMENT: development / staging / production
- RBAC_LOG_LEVEL, RBAC_JSON_LOGS, RBAC_LOG_FILE: logging output
- RBAC_DEFAULT_ROLE: role given to newly provisioned and unreadable profiles
  (guest or pending)
- RBAC_PROVINCES: JSON map of province id to branch codes,
  e.g. '{"P1": ["B1", "B2"], "P2": ["B3"]}'
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class AccessControlSettings(BaseSettings):
    """Access-control engine settings."""

    model_config = SettingsConfigDict(
        env_prefix="RBAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(default="development", description="Environment name")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")
    log_file: Optional[Path] = Field(default=None, description="Optional JSON log file")

    # Profiles
    default_role: str = Field(
        default="guest",
        description="Role for new profiles and profiles with an unknown role",
    )

    # Geography
    provinces: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Known provinces and the branch codes inside each",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("default_role")
    @classmethod
    def validate_default_role(cls, v: str) -> str:
        from rbac.decisions import AccessLayer, layer_of
        from rbac.roles import Role

        role = v.strip().lower()
        if role not in {r.value for r in Role}:
            raise ValueError(f"Unknown default role: {v}")
        # New and unreadable profiles must never be provisioned with staff access
        if layer_of(Role(role)) != AccessLayer.GUEST:
            raise ValueError(f"Default role must be a guest-layer role, got: {v}")
        return role

    @field_validator("provinces")
    @classmethod
    def validate_provinces(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        seen: Dict[str, str] = {}
        for province, branches in v.items():
            for branch in branches:
                if branch in seen and seen[branch] != province:
                    raise ValueError(
                        f"Branch {branch} listed under both {seen[branch]} and {province}"
                    )
                seen[branch] = province
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")

    def geography(self):
        """Build the ``GeographyDirectory`` of the configured provinces."""
        from rbac.geography import GeographyDirectory

        return GeographyDirectory.from_mapping(self.provinces)


@lru_cache
def get_settings() -> AccessControlSettings:
    """
    Get cached settings instance.

    Returns:
        AccessControlSettings: Cached settings loaded from environment.
    """
    settings = AccessControlSettings()
    logger.debug(
        "Settings loaded: environment=%s provinces=%d",
        settings.environment, len(settings.provinces),
    )
    return settings
