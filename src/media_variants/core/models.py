"""Shared data models for the media variants pipeline."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class FitMode(str, Enum):
    """How a size profile maps the original onto its box."""

    COVER = "cover"
    INSIDE = "inside"


class OutputFormat(str, Enum):
    JPEG = "JPEG"
    WEBP = "WEBP"


class AssetStatus(str, Enum):
    """Per-asset processing state."""

    DONE = "done"
    PARTIAL = "partial"


class VariantProfile(BaseModel):
    """One entry of the variant catalog."""

    name: str
    max_width: Optional[int] = None
    max_height: Optional[int] = None
    fit_mode: FitMode = FitMode.INSIDE
    output_format: OutputFormat = OutputFormat.JPEG

    @property
    def extension(self) -> str:
        return "webp" if self.output_format == OutputFormat.WEBP else "jpg"

    @property
    def content_type(self) -> str:
        return "image/webp" if self.output_format == OutputFormat.WEBP else "image/jpeg"

    @property
    def is_resize(self) -> bool:
        return self.max_width is not None or self.max_height is not None


class SourceAsset(BaseModel):
    """Represents an image owned by the record store."""

    id: str
    filename: str
    original_url: Optional[str] = None
    file_id: Optional[str] = None
    extension: Optional[str] = None

    @property
    def has_source(self) -> bool:
        return bool(self.original_url or self.file_id)


class ImageMetadata(BaseModel):
    """Header data decoded from the original."""

    width: int
    height: int
    file_size: int
    mime_type: str
    format: str


VariantSet = Dict[str, str]


class ProfileError(BaseModel):
    """A non-fatal failure of one profile."""

    profile: str
    stage: str
    error: str


class ProcessingResult(BaseModel):
    """Result of running the pipeline over a single asset."""

    asset_id: str
    metadata: ImageMetadata
    variants: VariantSet = Field(default_factory=dict)
    per_profile_errors: List[ProfileError] = Field(default_factory=list)
    processing_time: float = 0.0

    @property
    def status(self) -> AssetStatus:
        if self.per_profile_errors:
            return AssetStatus.PARTIAL
        return AssetStatus.DONE

    def failed_profiles(self) -> List[str]:
        return [e.profile for e in self.per_profile_errors]


class MediaRecord(BaseModel):
    """A media row as kept by the record store."""

    id: str
    filename: str
    file_id: Optional[str] = None
    file_extension: Optional[str] = None
    file_url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    variants: Optional[Dict[str, str]] = None

    def needs_processing(self) -> bool:
        return self.width is None or self.height is None or not self.variants

    def to_source_asset(self) -> SourceAsset:
        return SourceAsset(
            id=self.id,
            filename=self.filename,
            original_url=self.file_url,
            file_id=self.file_id,
            extension=self.file_extension,
        )


class AssetFilter(BaseModel):
    """Selection passed to the record store by the reconciliation scanner."""

    media_id: Optional[str] = None
    force: bool = False
    require_source: bool = False

    def matches(self, record: MediaRecord) -> bool:
        if self.media_id is not None:
            return record.id == self.media_id
        if self.require_source and not (record.file_id or record.file_url):
            return False
        return self.force or record.needs_processing()


class ErrorDetail(BaseModel):
    """One failed asset in a batch."""

    id: str
    filename: str
    error: str


class BatchSummary(BaseModel):
    """Totals for a reconciliation scan."""

    processed: int = 0
    success_count: int = 0
    error_count: int = 0
    skipped_count: int = 0
    error_details: List[ErrorDetail] = Field(default_factory=list)

    def to_response(self, message: str = "") -> Dict[str, Any]:
        """Render the JSON body shared by the HTTP endpoints."""
        body: Dict[str, Any] = {
            "success": True,
            "message": message,
            "processed": self.processed,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "skippedCount": self.skipped_count,
        }
        if self.error_details:
            body["errorDetails"] = [d.model_dump() for d in self.error_details]
        return body
