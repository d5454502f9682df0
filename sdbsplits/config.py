"""
Configuration for simpledb-splits.

Two layers share the same option set:

- ``StoreConfig`` validates the flat job configuration map (string keys to
  string values) that the planner and every worker receive.
- ``Settings`` loads the same options from environment variables (or a
  ``.env`` file) for the CLI and turns them into a job configuration map.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from sdbsplits.errors import ConfigurationError

# Job configuration keys
SIMPLEDB_AWS_ACCESSKEY = "simpledb.aws.accessKey"
SIMPLEDB_AWS_SECRETKEY = "simpledb.aws.secretKey"
SIMPLEDB_AWS_REGION = "simpledb.aws.region"
SIMPLEDB_DOMAIN = "simpledb.domain"
SIMPLEDB_WHERE_QUERY = "simpledb.wherequery"
SIMPLEDB_SPLIT_SIZE = "simpledb.split.size"
SIMPLEDB_BOUNDARY_MODE = "simpledb.split.boundary.mode"
SIMPLEDB_CONSISTENT_READ = "simpledb.consistent.read"
SIMPLEDB_CONNECT_TIMEOUT = "simpledb.timeout.connect"
SIMPLEDB_READ_TIMEOUT = "simpledb.timeout.read"

# US-EAST endpoint
DEFAULT_REGION = "sdb.amazonaws.com"

# Larger splits make SimpleDB row counts unreliable
MAX_SPLIT_SIZE = 100_000

BoundaryMode = Literal["incremental", "restart"]


class StoreConfig(BaseModel):
    """
    Validated view of a job configuration map.

    Field aliases are the map keys, so ``StoreConfig.model_validate(conf)``
    accepts the map as-is; string values are coerced by pydantic.
    """

    access_key: Optional[str] = Field(None, alias=SIMPLEDB_AWS_ACCESSKEY)
    secret_key: Optional[str] = Field(None, alias=SIMPLEDB_AWS_SECRETKEY)
    region: str = Field(DEFAULT_REGION, alias=SIMPLEDB_AWS_REGION)
    domain: str = Field(..., alias=SIMPLEDB_DOMAIN, min_length=1)
    where_clause: Optional[str] = Field(None, alias=SIMPLEDB_WHERE_QUERY)
    split_size: int = Field(MAX_SPLIT_SIZE, alias=SIMPLEDB_SPLIT_SIZE, gt=0)
    boundary_mode: BoundaryMode = Field("incremental", alias=SIMPLEDB_BOUNDARY_MODE)
    consistent_read: bool = Field(False, alias=SIMPLEDB_CONSISTENT_READ)
    connect_timeout: float = Field(10.0, alias=SIMPLEDB_CONNECT_TIMEOUT, gt=0)
    read_timeout: float = Field(60.0, alias=SIMPLEDB_READ_TIMEOUT, gt=0)

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }

    @field_validator("split_size")
    @classmethod
    def _clamp_split_size(cls, value: int) -> int:
        return min(value, MAX_SPLIT_SIZE)

    @field_validator("where_clause")
    @classmethod
    def _blank_where_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @classmethod
    def from_mapping(cls, conf: Mapping[str, str]) -> "StoreConfig":
        """
        Build a StoreConfig from a job configuration map.

        Raises
        ------
        ConfigurationError
            If a required key is missing or a value does not validate.
        """
        try:
            return cls.model_validate(dict(conf))
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid job configuration: {exc}") from exc

    def to_mapping(self) -> Dict[str, str]:
        """Render back to a flat string map (unset optional keys are omitted)."""
        conf: Dict[str, str] = {}
        for key, value in self.model_dump(by_alias=True, exclude_none=True).items():
            conf[key] = str(value).lower() if isinstance(value, bool) else str(value)
        return conf


class Settings(BaseSettings):
    # SimpleDB
    simpledb_access_key: Optional[str] = Field(None, alias="SIMPLEDB_AWS_ACCESS_KEY")
    simpledb_secret_key: Optional[str] = Field(None, alias="SIMPLEDB_AWS_SECRET_KEY")
    simpledb_region: str = Field(DEFAULT_REGION, alias="SIMPLEDB_AWS_REGION")
    simpledb_domain: Optional[str] = Field(None, alias="SIMPLEDB_DOMAIN")
    simpledb_where: Optional[str] = Field(None, alias="SIMPLEDB_WHERE_QUERY")
    split_size: int = Field(MAX_SPLIT_SIZE, alias="SIMPLEDB_SPLIT_SIZE")
    boundary_mode: BoundaryMode = Field("incremental", alias="SIMPLEDB_BOUNDARY_MODE")
    consistent_read: bool = Field(False, alias="SIMPLEDB_CONSISTENT_READ")
    connect_timeout: float = Field(10.0, alias="SIMPLEDB_CONNECT_TIMEOUT")
    read_timeout: float = Field(60.0, alias="SIMPLEDB_READ_TIMEOUT")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Job defaults
    job_processes: int = Field(4, alias="JOB_PROCESSES")
    job_timeout_seconds: float = Field(3600.0, alias="JOB_TIMEOUT_SECONDS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def job_conf(self) -> Dict[str, str]:
        """
        Build the job configuration map from environment settings.

        Unset optional values are left out so StoreConfig defaults apply.
        """
        conf = {
            SIMPLEDB_AWS_ACCESSKEY: self.simpledb_access_key,
            SIMPLEDB_AWS_SECRETKEY: self.simpledb_secret_key,
            SIMPLEDB_AWS_REGION: self.simpledb_region,
            SIMPLEDB_DOMAIN: self.simpledb_domain,
            SIMPLEDB_WHERE_QUERY: self.simpledb_where,
            SIMPLEDB_SPLIT_SIZE: str(self.split_size),
            SIMPLEDB_BOUNDARY_MODE: self.boundary_mode,
            SIMPLEDB_CONSISTENT_READ: str(self.consistent_read).lower(),
            SIMPLEDB_CONNECT_TIMEOUT: str(self.connect_timeout),
            SIMPLEDB_READ_TIMEOUT: str(self.read_timeout),
        }
        return {key: value for key, value in conf.items() if value is not None}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = [
    "BoundaryMode",
    "DEFAULT_REGION",
    "MAX_SPLIT_SIZE",
    "SIMPLEDB_AWS_ACCESSKEY",
    "SIMPLEDB_AWS_REGION",
    "SIMPLEDB_AWS_SECRETKEY",
    "SIMPLEDB_BOUNDARY_MODE",
    "SIMPLEDB_CONNECT_TIMEOUT",
    "SIMPLEDB_CONSISTENT_READ",
    "SIMPLEDB_DOMAIN",
    "SIMPLEDB_READ_TIMEOUT",
    "SIMPLEDB_SPLIT_SIZE",
    "SIMPLEDB_WHERE_QUERY",
    "Settings",
    "StoreConfig",
    "get_settings",
]
