"""Service implementations for the media variants pipeline."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

import requests
from botocore.exceptions import ClientError

from .config import PipelineSettings, StorageSettings
from .error_handling import (
    BatchOperationContextManager,
    is_missing_object_error,
    retry_storage_operation,
)
from .exceptions import (
    FATAL_ASSET_ERRORS,
    AssetBusyError,
    DecodeError,
    DownloadError,
    MediaVariantsError,
    PersistError,
    TranscodeError,
    UploadError,
    VariantGenerationError,
    translate_errors,
)
from .image_utils import (
    encode_jpeg,
    encode_webp,
    filename_from_url,
    flatten_on_white,
    open_image,
    read_image_metadata,
    resize_for_profile,
    shrink_to_fit,
    strip_extension,
)
from .models import (
    AssetFilter,
    BatchSummary,
    ErrorDetail,
    ImageMetadata,
    OutputFormat,
    ProcessingResult,
    ProfileError,
    SourceAsset,
    VariantProfile,
)
from .observability import LogContext, MetricsCollector, timed_stage
from .profiles import (
    CACHE_CONTROL,
    JPEG_QUALITY,
    PROFILES_BY_NAME,
    SENTINEL_PROFILE,
    VARIANT_PROFILES,
    WEBP_METHOD,
    WEBP_QUALITY,
    is_complete,
    variant_key,
)
from .protocols import (
    HttpSessionProtocol,
    LoggerProtocol,
    RecordStoreProtocol,
    S3ClientProtocol,
)

USER_AGENT = "media-variants/0.1"

STAGE_BY_ERROR = (
    (VariantGenerationError, "generate"),
    (TranscodeError, "transcode"),
    (UploadError, "upload"),
)


def _remaining(deadline: Optional[float]) -> Optional[float]:
    if deadline is None:
        return None
    return deadline - time.monotonic()


class ImageProcessorService:
    """Pure image processing service with no I/O dependencies."""

    def __init__(
        self,
        jpeg_quality: int = JPEG_QUALITY,
        webp_quality: int = WEBP_QUALITY,
        webp_method: int = WEBP_METHOD,
    ):
        self._jpeg_quality = jpeg_quality
        self._webp_quality = webp_quality
        self._webp_method = webp_method

    def extract_metadata(self, image_bytes: bytes) -> ImageMetadata:
        """Decode the original; any failure is a DecodeError."""
        if not image_bytes:
            raise DecodeError("Empty image buffer")
        with translate_errors(DecodeError, "Cannot decode image"):
            metadata = read_image_metadata(image_bytes)
            # Headers can parse while the pixel data is truncated.
            open_image(image_bytes)
        return metadata

    def generate_variant(self, image_bytes: bytes, profile: VariantProfile) -> bytes:
        """Resize per profile, flatten onto white and encode as progressive JPEG."""
        with translate_errors(VariantGenerationError, f"Profile '{profile.name}' failed"):
            image = flatten_on_white(open_image(image_bytes))
            return encode_jpeg(resize_for_profile(image, profile), self._jpeg_quality)

    def transcode_webp(self, image_bytes: bytes) -> bytes:
        with translate_errors(TranscodeError, "WebP transcode failed"):
            return encode_webp(
                open_image(image_bytes), self._webp_quality, self._webp_method
            )

    def render(self, image_bytes: bytes, profile: VariantProfile) -> bytes:
        if profile.output_format == OutputFormat.WEBP:
            return self.transcode_webp(image_bytes)
        return self.generate_variant(image_bytes, profile)

    def optimize(
        self,
        image_bytes: bytes,
        quality: int = JPEG_QUALITY,
        max_width: Optional[int] = None,
        max_height: Optional[int] = None,
    ) -> bytes:
        """Re-encode as JPEG, shrinking to fit the box if one is given."""
        with translate_errors(DecodeError, "Cannot optimize image"):
            image = open_image(image_bytes)
            image = shrink_to_fit(image, max_width, max_height)
            return encode_jpeg(image, quality)


class HttpDownloader:
    """Fetches originals over HTTP into memory."""

    def __init__(
        self,
        logger: LoggerProtocol,
        session: Optional[HttpSessionProtocol] = None,
        timeout: float = 30.0,
    ):
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": USER_AGENT})
        self._session = session
        self._timeout = timeout
        self._logger = logger

    def download(self, url: str, timeout: Optional[float] = None) -> bytes:
        """Return the body of a 2xx response; anything else is a DownloadError."""
        effective_timeout = self._timeout if timeout is None else min(timeout, self._timeout)
        if effective_timeout <= 0:
            raise DownloadError(f"Deadline exceeded before downloading {url}")

        self._logger.debug(f"Downloading {url} (timeout={effective_timeout:.1f}s)")
        try:
            response = self._session.get(url, timeout=effective_timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DownloadError(f"Failed to download image from {url}: {exc}") from exc

        return response.content


class S3VariantStore:
    """Writes variants to object storage and answers existence probes."""

    def __init__(
        self,
        s3_client: S3ClientProtocol,
        settings: StorageSettings,
        logger: LoggerProtocol,
        retry_delay: float = 1.0,
    ):
        self._s3_client = s3_client
        self.settings = settings
        self._logger = logger
        self._put_with_retry = retry_storage_operation(
            max_attempts=settings.max_attempts, initial_delay=retry_delay
        )(self._put_once)

    def _put_once(self, data: bytes, key: str, content_type: str) -> None:
        with translate_errors(UploadError, f"Upload of {key} failed"):
            self._s3_client.put_object(
                Bucket=self.settings.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl=CACHE_CONTROL,
            )

    def put_variant(self, data: bytes, key: str, content_type: str) -> str:
        """Upload under a deterministic key and return the public URL."""
        self._logger.debug(f"Uploading s3://{self.settings.bucket_name}/{key}")
        self._put_with_retry(data, key, content_type)
        return self.settings.public_url(key)

    def object_exists(self, key: str) -> bool:
        try:
            self._s3_client.head_object(Bucket=self.settings.bucket_name, Key=key)
        except ClientError as exc:
            if is_missing_object_error(exc):
                return False
            raise UploadError(f"Cannot probe {key}: {exc}") from exc
        return True

    def variants_exist(self, base_filename: str) -> bool:
        """Probe the thumbnail key as a stand-in for the whole variant set."""
        key = variant_key(PROFILES_BY_NAME[SENTINEL_PROFILE], base_filename)
        return self.object_exists(key)


@dataclass
class VariantOutcome:
    """Result of one profile: a URL or the error that prevented it."""

    profile: str
    url: Optional[str] = None
    error: Optional[ProfileError] = None


class VariantPipeline:
    """Download, extract, render every profile, upload. Never touches the record store."""

    def __init__(
        self,
        downloader: HttpDownloader,
        image_processor: ImageProcessorService,
        store: S3VariantStore,
        logger: LoggerProtocol,
        settings: Optional[PipelineSettings] = None,
        profiles: Sequence[VariantProfile] = VARIANT_PROFILES,
        metrics_collector: Optional[MetricsCollector] = None,
    ):
        self._downloader = downloader
        self._image_processor = image_processor
        self._store = store
        self._logger = logger
        self._settings = settings or PipelineSettings()
        self._profiles = list(profiles)
        self._metrics_collector = metrics_collector

    @property
    def profiles(self) -> List[VariantProfile]:
        return list(self._profiles)

    def source_url(self, asset: SourceAsset) -> str:
        url = self._store.settings.source_url_for(asset)
        if not url:
            raise DownloadError(f"Media {asset.id} has no file URL or file id")
        return url

    def base_filename(self, asset: SourceAsset) -> str:
        base = strip_extension(filename_from_url(self.source_url(asset)))
        return base or strip_extension(asset.filename)

    def process_asset(
        self, asset: SourceAsset, deadline: Optional[float] = None
    ) -> ProcessingResult:
        """Run the full pipeline for one asset.

        Download and decode failures raise; per-profile failures are returned
        in ``per_profile_errors``.
        """
        start_time = time.time()
        log_context = LogContext(
            operation="process_asset", component="variant_pipeline"
        ).with_metadata(asset_id=asset.id, filename=asset.filename)

        url = self.source_url(asset)
        base_filename = self.base_filename(asset)

        self._logger.debug("Downloading original", log_context.with_operation("download"))
        with timed_stage("download", self._metrics_collector):
            image_bytes = self._downloader.download(url, timeout=self._download_budget(deadline))

        self._logger.debug("Extracting metadata", log_context.with_operation("extract_metadata"))
        with timed_stage("extract_metadata", self._metrics_collector):
            metadata = self._image_processor.extract_metadata(image_bytes)

        reuse = self._settings.reuse_existing and self._safe_variants_exist(base_filename)

        outcomes = self._render_all(image_bytes, base_filename, reuse, deadline)

        result = ProcessingResult(asset_id=asset.id, metadata=metadata)
        for outcome in outcomes:
            if outcome.url is not None:
                result.variants[outcome.profile] = outcome.url
            elif outcome.error is not None:
                result.per_profile_errors.append(outcome.error)
        result.processing_time = time.time() - start_time

        if result.per_profile_errors:
            self._logger.warning(
                "Variants generated with failures",
                log_context,
                failed=",".join(result.failed_profiles()),
            )
        else:
            self._logger.info(
                "All variants generated",
                log_context,
                width=metadata.width,
                height=metadata.height,
                processing_time_ms=round(result.processing_time * 1000, 1),
            )
        return result

    def _download_budget(self, deadline: Optional[float]) -> Optional[float]:
        remaining = _remaining(deadline)
        if remaining is None:
            return None
        return max(remaining, 0.0)

    def _safe_variants_exist(self, base_filename: str) -> bool:
        try:
            return self._store.variants_exist(base_filename)
        except UploadError as exc:
            self._logger.warning(f"Existence probe failed for {base_filename}: {exc}")
            return False

    def _render_all(
        self,
        image_bytes: bytes,
        base_filename: str,
        reuse: bool,
        deadline: Optional[float],
    ) -> List[VariantOutcome]:
        workers = max(1, min(self._settings.variant_workers, len(self._profiles)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(
                    self._render_and_upload, profile, image_bytes, base_filename, reuse, deadline
                )
                for profile in self._profiles
            ]

            outcomes: List[VariantOutcome] = []
            for profile, future in zip(self._profiles, futures):
                try:
                    outcomes.append(future.result())
                except Exception as e:
                    outcomes.append(
                        VariantOutcome(
                            profile=profile.name,
                            error=ProfileError(profile=profile.name, stage="unexpected", error=str(e)),
                        )
                    )
        return outcomes

    def _render_and_upload(
        self,
        profile: VariantProfile,
        image_bytes: bytes,
        base_filename: str,
        reuse: bool,
        deadline: Optional[float],
    ) -> VariantOutcome:
        key = variant_key(profile, base_filename)
        remaining = _remaining(deadline)
        if remaining is not None and remaining <= 0:
            return VariantOutcome(
                profile=profile.name,
                error=ProfileError(profile=profile.name, stage="deadline", error="Asset deadline exceeded"),
            )

        try:
            if reuse and self._store.object_exists(key):
                self._logger.debug(f"Reusing existing {key}")
                return VariantOutcome(profile=profile.name, url=self._store.settings.public_url(key))

            with timed_stage(f"render:{profile.name}", self._metrics_collector):
                data = self._image_processor.render(image_bytes, profile)
            with timed_stage(f"upload:{profile.name}", self._metrics_collector):
                url = self._store.put_variant(data, key, profile.content_type)
        except MediaVariantsError as exc:
            stage = next((s for cls, s in STAGE_BY_ERROR if isinstance(exc, cls)), "unexpected")
            self._logger.error(f"Variant '{profile.name}' failed at {stage}: {exc}")
            return VariantOutcome(
                profile=profile.name,
                error=ProfileError(profile=profile.name, stage=stage, error=str(exc)),
            )

        self._logger.debug(f"Generated {profile.name}: {url}")
        return VariantOutcome(profile=profile.name, url=url)

    def optimize_image(
        self,
        url: str,
        quality: int = JPEG_QUALITY,
        max_width: Optional[int] = None,
        max_height: Optional[int] = None,
    ) -> bytes:
        """Download an image and return a re-encoded JPEG without generating variants."""
        image_bytes = self._downloader.download(url)
        return self._image_processor.optimize(image_bytes, quality, max_width, max_height)


class AssetLockRegistry:
    """Per-asset advisory locks for triggers running in the same process."""

    def __init__(self):
        self._guard = threading.Lock()
        self._busy: set = set()

    @contextmanager
    def hold(self, asset_id: str) -> Iterator[None]:
        with self._guard:
            if asset_id in self._busy:
                raise AssetBusyError(f"Media {asset_id} is already being processed")
            self._busy.add(asset_id)
        try:
            yield
        finally:
            with self._guard:
                self._busy.discard(asset_id)

    def is_busy(self, asset_id: str) -> bool:
        with self._guard:
            return asset_id in self._busy


class AssetProcessingService:
    """Runs the pipeline for one asset and persists the outcome.

    Shared by the post-create hook, the HTTP endpoints and the scanner.
    """

    def __init__(
        self,
        pipeline: VariantPipeline,
        record_store: RecordStoreProtocol,
        logger: LoggerProtocol,
        locks: Optional[AssetLockRegistry] = None,
    ):
        self.pipeline = pipeline
        self._record_store = record_store
        self._logger = logger
        self._locks = locks or AssetLockRegistry()

    def process_and_persist(
        self, asset: SourceAsset, deadline: Optional[float] = None
    ) -> ProcessingResult:
        with self._locks.hold(asset.id):
            result = self.pipeline.process_asset(asset, deadline=deadline)

            with translate_errors(PersistError, f"Cannot update media {asset.id}"):
                self._record_store.update_asset_metadata_and_variants(
                    asset.id, result.metadata, result.variants
                )

        self._logger.debug(f"Persisted {len(result.variants)} variants for {asset.id}")
        return result


class ReconciliationScanner:
    """Finds assets missing metadata/variants and repairs each in isolation."""

    def __init__(
        self,
        processing_service: AssetProcessingService,
        record_store: RecordStoreProtocol,
        logger: LoggerProtocol,
        settings: Optional[PipelineSettings] = None,
    ):
        self._processing_service = processing_service
        self._record_store = record_store
        self._logger = logger
        self._settings = settings or PipelineSettings()

    def scan_and_repair(self, asset_filter: Optional[AssetFilter] = None) -> BatchSummary:
        """Repair every matching asset; one failure never stops the batch.

        Failures of the record-store query itself propagate to the caller.
        """
        asset_filter = asset_filter or AssetFilter()
        assets = self._record_store.find_assets_needing_processing(asset_filter)
        summary = BatchSummary(processed=len(assets))

        self._logger.info(f"Found {len(assets)} media files to process")
        if not assets:
            return summary

        runnable: List[SourceAsset] = []
        for asset in assets:
            if asset.has_source:
                runnable.append(asset)
            else:
                self._logger.warning(f"Skipped {asset.filename} ({asset.id}): no file URL or file id")
                summary.skipped_count += 1

        with BatchOperationContextManager("Variant reconciliation", logger=self._logger) as batch:
            for detail in self._run(runnable):
                if detail is None:
                    summary.success_count += 1
                    continue
                summary.error_count += 1
                summary.error_details.append(detail)
                batch.add_error(detail.error, item_identifier=f"{detail.filename} ({detail.id})")

        self._logger.info(
            f"Summary: {summary.success_count} success, {summary.error_count} errors, "
            f"{summary.skipped_count} skipped"
        )
        return summary

    def _run(self, assets: List[SourceAsset]) -> Iterator[Optional[ErrorDetail]]:
        total = len(assets)
        workers = min(self._settings.scan_workers, total) if total else 1
        if workers <= 1:
            for index, asset in enumerate(assets):
                self._logger.info(f"[{index + 1}/{total}] Processing: {asset.filename}")
                yield self._repair_one(asset)
            return

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._repair_one, asset) for asset in assets]
            for future in futures:
                yield future.result()

    def _repair_one(self, asset: SourceAsset) -> Optional[ErrorDetail]:
        deadline = time.monotonic() + self._settings.asset_timeout
        try:
            result = self._processing_service.process_and_persist(asset, deadline=deadline)
        except Exception as e:
            self._logger.error(f"Failed {asset.filename} ({asset.id}): {e}")
            if isinstance(e, FATAL_ASSET_ERRORS):
                self._logger.info(f"Left {asset.id} unchanged; the next scan will retry it")
            return ErrorDetail(id=asset.id, filename=asset.filename, error=str(e))

        expected = {profile.name for profile in self._processing_service.pipeline.profiles}
        if not is_complete(result.variants, expected):
            # A non-empty variant set no longer matches the default scan filter.
            self._logger.warning(
                f"Partially repaired {asset.filename}: failed profiles "
                f"{', '.join(result.failed_profiles())}; regenerate with force to retry them"
            )
        return None
