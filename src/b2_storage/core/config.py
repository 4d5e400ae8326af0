"""Configuration for B2 storage."""

import os
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

ENV_VARS = {
    "account_id": "B2_ACCOUNT_ID",
    "app_key": "B2_APP_KEY",
    "bucket": "B2_BUCKET",
    "path": "B2_PATH",
    "part_size": "B2_PART_SIZE",
}

REQUIRED = ("account_id", "app_key", "bucket")


class StorageConfig(BaseModel):
    """Settings for one storage destination."""

    account_id: str = Field(..., min_length=1, description="B2 account id or key id")
    app_key: str = Field(..., min_length=1, description="B2 application key")
    bucket: str = Field(..., min_length=1, description="Bucket name")
    path: str = Field("", description="Prefix for remote names", examples=["backups/daily"])
    part_size: Optional[int] = Field(
        None, gt=0, description="Part size for large files (defaults to the recommended size)"
    )
    connect_timeout: float = Field(10, gt=0, description="Connect timeout in seconds")
    read_timeout: float = Field(300, gt=0, description="Read timeout in seconds")

    @field_validator("path")
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        """Remote names are relative to the bucket root."""
        return v.strip("/")

    def remote_name(self, name: str) -> str:
        name = name.lstrip("/")
        return f"{self.path}/{name}" if self.path else name

    @classmethod
    def from_env(cls, **overrides: Any) -> "StorageConfig":
        """Build a config from B2_* environment variables.

        Keyword arguments that are not None take precedence.
        """
        values = {}
        for field, env_var in ENV_VARS.items():
            value = os.getenv(env_var)
            if value:
                values[field] = value
        values.update({k: v for k, v in overrides.items() if v is not None})

        not_specified = [ENV_VARS[name] for name in REQUIRED if not values.get(name)]
        if not_specified:
            raise ConfigurationError(f"{', '.join(not_specified)} required")
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc
