"""Protocol definitions for dependency injection and testability."""

from typing import Any, Dict, List, Optional, Protocol

from .models import AssetFilter, ImageMetadata, SourceAsset, VariantSet


class S3ClientProtocol(Protocol):
    """The subset of the boto3 S3 client the pipeline uses."""

    def put_object(
        self,
        Bucket: str,
        Key: str,
        Body: bytes,
        ContentType: str,
        CacheControl: str,
    ) -> Dict[str, Any]:
        """Put object to S3."""
        ...

    def head_object(self, Bucket: str, Key: str) -> Dict[str, Any]:
        """Probe an object; raises ClientError(404) when missing."""
        ...


class HttpResponseProtocol(Protocol):
    status_code: int
    content: bytes

    def raise_for_status(self) -> None:
        ...


class HttpSessionProtocol(Protocol):
    """The subset of requests.Session the downloader uses."""

    def get(self, url: str, timeout: Optional[float] = None) -> HttpResponseProtocol:
        ...


class RecordStoreProtocol(Protocol):
    """The CMS data layer holding media rows."""

    def find_assets_needing_processing(
        self, asset_filter: AssetFilter
    ) -> List[SourceAsset]:
        """Assets matching the filter, in store order."""
        ...

    def get_asset(self, asset_id: str) -> Optional[SourceAsset]:
        ...

    def update_asset_metadata_and_variants(
        self, asset_id: str, metadata: ImageMetadata, variants: VariantSet
    ) -> None:
        """Overwrite metadata and variants for one row."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        ...
