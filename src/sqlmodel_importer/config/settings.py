"""Runtime settings for importer runs.

Settings are plain pydantic models. Values come from keyword arguments or
from IMPORTER_* environment variables (a local .env file is honoured).
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.engine import Engine

from sqlmodel_importer.engines import create_engine_for_target, create_engine_from_url
from sqlmodel_importer.exceptions import ConfigurationError

from .targets import get_target


class ImporterSettings(BaseModel):
    """Settings shared by the CLI and programmatic importer runs."""

    model_config = ConfigDict(extra="forbid")

    database_url: str = "sqlite:///imports.db"
    target: Optional[str] = Field(default=None, description="Named target; wins over database_url")
    log_level: str = "INFO"
    archive_path: Optional[Path] = Field(default=None, description="Archive directory for imported rows")
    batch_size: int = Field(default=1000, gt=0, description="Rows per INSERT batch")
    echo: bool = False
    stale_after_minutes: int = Field(
        default=60, gt=0, description="Age after which a running import is considered abandoned"
    )

    @classmethod
    def from_env(cls, prefix: str = "IMPORTER_", dotenv_path: Optional[str] = None, **overrides):
        """Build settings from environment variables.

        Args:
            prefix: Environment variable prefix (IMPORTER_DATABASE_URL, ...)
            dotenv_path: Optional .env file to load first
            **overrides: Explicit values that win over the environment

        Returns:
            ImporterSettings instance

        Raises:
            ConfigurationError: If a value does not validate
        """
        load_dotenv(dotenv_path)

        values = {}
        for field_name in cls.model_fields:
            env_value = os.getenv(f"{prefix}{field_name.upper()}")
            if env_value not in (None, ""):
                values[field_name] = env_value

        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            fields = ", ".join(f"{prefix}{'.'.join(str(p) for p in err['loc']).upper()}" for err in e.errors())
            raise ConfigurationError(f"Invalid settings ({fields}): {e}") from e

    def create_engine(self) -> Engine:
        """Engine for the named target, or for database_url when no target is set.

        Raises:
            ConfigurationError: If the target name is unknown
        """
        if self.target:
            return create_engine_for_target(get_target(self.target), echo=self.echo or None)
        return create_engine_from_url(self.database_url, echo=self.echo)
