"""Environment-driven settings for storage and pipeline tuning."""

import os
from typing import Mapping, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ValidationError

from .exceptions import ConfigurationError
from .models import SourceAsset

DEFAULT_BUCKET = "busrom-media"
DEFAULT_REGION = "us-east-1"
DEFAULT_PUBLIC_DOMAIN = "http://localhost:9000"


def _env_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


class StorageSettings(BaseModel):
    """Object store connection and public URL configuration."""

    bucket_name: str = DEFAULT_BUCKET
    region: str = DEFAULT_REGION
    endpoint_url: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    cdn_domain: Optional[str] = None
    connect_timeout: float = 10.0
    read_timeout: float = 30.0
    max_attempts: int = 3

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StorageSettings":
        env = os.environ if environ is None else environ
        cdn = env.get("CDN_DOMAIN")
        try:
            return cls(
                bucket_name=env.get("S3_BUCKET_NAME", DEFAULT_BUCKET),
                region=env.get("S3_REGION", DEFAULT_REGION),
                endpoint_url=env.get("S3_ENDPOINT") or None,
                access_key_id=env.get("S3_ACCESS_KEY_ID") or None,
                secret_access_key=env.get("S3_SECRET_ACCESS_KEY") or None,
                cdn_domain=None if cdn in (None, "", "NONE") else cdn,
                read_timeout=env.get("UPLOAD_TIMEOUT", 30.0),
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid storage settings: {exc}") from exc

    @property
    def public_domain(self) -> str:
        """CDN domain (or endpoint) with a scheme and no trailing slash."""
        domain = self.cdn_domain or self.endpoint_url or DEFAULT_PUBLIC_DOMAIN
        if not domain.startswith(("http://", "https://")):
            domain = f"https://{domain}"
        return domain.rstrip("/")

    @property
    def is_cloudfront(self) -> bool:
        return "cloudfront.net" in (urlparse(self.public_domain).hostname or "")

    def public_url(self, key: str) -> str:
        """Publicly resolvable URL for an object key."""
        key = key.lstrip("/")
        if self.is_cloudfront:
            return f"{self.public_domain}/{key}"
        return f"{self.public_domain}/{self.bucket_name}/{key}"

    def source_url_for(self, asset: SourceAsset) -> Optional[str]:
        """URL of the original, rebuilt from the storage file id when missing."""
        if asset.original_url:
            return asset.original_url
        if not asset.file_id:
            return None
        extension = (asset.extension or "jpg").lstrip(".")
        return self.public_url(f"{asset.file_id}.{extension}")


class PipelineSettings(BaseModel):
    """Timeouts and worker counts for the orchestrator and scanner."""

    download_timeout: float = 30.0
    asset_timeout: float = 300.0
    variant_workers: int = 3
    scan_workers: int = 1
    reuse_existing: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PipelineSettings":
        env = os.environ if environ is None else environ
        values = {
            "download_timeout": env.get("DOWNLOAD_TIMEOUT"),
            "asset_timeout": env.get("ASSET_TIMEOUT"),
            "variant_workers": env.get("VARIANT_WORKERS"),
            "scan_workers": env.get("SCAN_WORKERS"),
        }
        try:
            settings = cls(
                reuse_existing=_env_bool(env.get("REUSE_EXISTING_VARIANTS")),
                **{k: v for k, v in values.items() if v is not None},
            )
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid pipeline settings: {exc}") from exc
        if settings.variant_workers < 1 or settings.scan_workers < 1:
            raise ConfigurationError("Worker counts must be at least 1")
        return settings
