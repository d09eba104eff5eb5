"""Core utilities and shared components for the media variants pipeline."""

from .config import PipelineSettings, StorageSettings
from .exceptions import (
    AssetBusyError,
    ConfigurationError,
    DecodeError,
    DownloadError,
    MediaVariantsError,
    PersistError,
    TranscodeError,
    UploadError,
    VariantGenerationError,
)
from .logging_config import get_logger, setup_logger
from .models import (
    AssetFilter,
    AssetStatus,
    BatchSummary,
    ErrorDetail,
    FitMode,
    ImageMetadata,
    MediaRecord,
    ProcessingResult,
    ProfileError,
    SourceAsset,
    VariantProfile,
)
from .profiles import VARIANT_PROFILES, variant_key

__all__ = [
    "PipelineSettings",
    "StorageSettings",
    "MediaVariantsError",
    "DownloadError",
    "DecodeError",
    "VariantGenerationError",
    "TranscodeError",
    "UploadError",
    "PersistError",
    "ConfigurationError",
    "AssetBusyError",
    "setup_logger",
    "get_logger",
    "AssetFilter",
    "AssetStatus",
    "BatchSummary",
    "ErrorDetail",
    "FitMode",
    "ImageMetadata",
    "MediaRecord",
    "ProcessingResult",
    "ProfileError",
    "SourceAsset",
    "VariantProfile",
    "VARIANT_PROFILES",
    "variant_key",
]
