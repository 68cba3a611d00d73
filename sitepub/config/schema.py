# SITEPUB Configuration Schema
# Pydantic models for YAML configuration validation

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from sitepub.utils.paths import normalize_prefix


class StorageBackend(str, Enum):
    """Object storage backend."""

    LOCAL = "local"
    S3 = "s3"


class CdnBackend(str, Enum):
    """CDN backend."""

    NONE = "none"
    CLOUDFRONT = "cloudfront"


class SiteConfig(BaseModel):
    """Local asset tree settings."""

    root: str = Field(default="./public", description="Directory holding the built site")

    @field_validator("root")
    @classmethod
    def expand_root(cls, v: str) -> str:
        """Expand ~ in path."""
        return str(Path(v).expanduser())


class StorageTarget(BaseModel):
    """Storage target the site is published to."""

    backend: StorageBackend = Field(default=StorageBackend.S3, description="Storage backend")
    bucket: str = Field(description="Bucket name (or a label for the local backend)")
    prefix: str = Field(default="", description="Key prefix all objects are published under")
    region: str | None = Field(default=None, description="Storage region")
    account_id: str | None = Field(default=None, description="Account owning the CDN distribution")
    partition: str = Field(default="aws", description="ARN partition")
    endpoint_url: str | None = Field(default=None, description="Custom S3-compatible endpoint")
    local_path: str | None = Field(default=None, description="Target directory for the local backend")

    @field_validator("bucket")
    @classmethod
    def check_bucket(cls, v: str) -> str:
        """Reject empty bucket names."""
        if not v.strip():
            raise ValueError("bucket must not be empty")
        return v.strip()

    @field_validator("prefix")
    @classmethod
    def clean_prefix(cls, v: str) -> str:
        """Store prefixes as 'path/' or ''."""
        return normalize_prefix(v)

    @field_validator("account_id")
    @classmethod
    def check_account_id(cls, v: str | None) -> str | None:
        """Account ids are 12 digits."""
        if v is not None and not re.fullmatch(r"\d{12}", v):
            raise ValueError("account_id must be 12 digits")
        return v

    @field_validator("local_path")
    @classmethod
    def expand_local_path(cls, v: str | None) -> str | None:
        """Expand ~ in optional path."""
        if v is None:
            return None
        return str(Path(v).expanduser())

    @model_validator(mode="after")
    def check_local_path(self) -> "StorageTarget":
        """The local backend needs a directory."""
        if self.backend == StorageBackend.LOCAL and not self.local_path:
            raise ValueError("local_path is required for the local storage backend")
        return self

    @property
    def resource_arn(self) -> str:
        """ARN of the bucket."""
        return f"arn:{self.partition}:s3:::{self.bucket}"

    @property
    def objects_arn(self) -> str:
        """ARN pattern covering every object under the prefix."""
        return f"{self.resource_arn}/{self.prefix}*"

    def distribution_arn(self, distribution_id: str) -> str:
        """ARN of a CDN distribution in this target's account."""
        return f"arn:{self.partition}:cloudfront::{self.account_id}:distribution/{distribution_id}"


class CdnConfig(BaseModel):
    """CDN settings."""

    backend: CdnBackend = Field(default=CdnBackend.NONE, description="CDN backend")
    distribution_id: str | None = Field(default=None, description="Distribution identifier")
    alias: str | None = Field(default=None, description="Domain alias used to look up the distribution")
    invalidate: bool = Field(default=True, description="Invalidate changed keys after publishing")
    apply_error_routes: bool = Field(default=False, description="Push error routes to the distribution")


class ScanSettings(BaseModel):
    """Asset scanning settings."""

    exclude: list[str] = Field(default_factory=list, description="Glob patterns excluded from publishing")
    workers: int = Field(default=4, ge=1, description="Fingerprinting threads")


class UploadSettings(BaseModel):
    """Upload concurrency and retry settings."""

    max_concurrency: int = Field(default=8, ge=1, description="Maximum in-flight uploads")
    retry_ceiling: int = Field(default=5, ge=0, description="Retries for throttled uploads")
    backoff_base: float = Field(default=0.5, ge=0, description="First retry delay in seconds")
    backoff_max: float = Field(default=8.0, ge=0, description="Maximum retry delay in seconds")


class PolicySettings(BaseModel):
    """Access policy write settings."""

    max_attempts: int = Field(default=5, ge=1, description="Conditional write attempts before giving up")
    backoff_base: float = Field(default=0.2, ge=0, description="First conflict retry delay in seconds")


class ErrorRouteConfig(BaseModel):
    """A single error route."""

    status_code: int = Field(ge=400, le=499, description="Matched 4xx status code")
    document: str = Field(description="Fallback document key")
    response_code: int = Field(default=404, ge=200, le=599, description="Status code returned to clients")
    cache_ttl: int = Field(default=10, ge=0, description="Seconds the fallback response is cached")


class OutputConfig(BaseModel):
    """Output and logging configuration."""

    verbose: bool = Field(default=False, description="Enable verbose output")
    colored: bool = Field(default=True, description="Enable colored output")


class PublisherConfig(BaseModel):
    """Root configuration model for sitepub."""

    site: SiteConfig = Field(default_factory=SiteConfig, description="Local site settings")
    storage: StorageTarget = Field(description="Storage target")
    cdn: CdnConfig = Field(default_factory=CdnConfig, description="CDN settings")
    scan: ScanSettings = Field(default_factory=ScanSettings, description="Scan settings")
    upload: UploadSettings = Field(default_factory=UploadSettings, description="Upload settings")
    policy: PolicySettings = Field(default_factory=PolicySettings, description="Policy settings")
    content_types: dict[str, str] = Field(default_factory=dict, description="Extension to MIME type overrides")
    error_routes: list[ErrorRouteConfig] = Field(
        default_factory=lambda: [
            ErrorRouteConfig(status_code=404, document="error.html"),
            ErrorRouteConfig(status_code=403, document="error.html"),
        ],
        description="Error status routes",
    )
    output: OutputConfig = Field(default_factory=OutputConfig, description="Output settings")
