"""Factory classes for creating configured service instances."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

import boto3
from botocore.config import Config

from .config import PipelineSettings, StorageSettings
from .logging_config import setup_logger
from .observability import MetricsCollector, StructuredLogger
from .protocols import (
    HttpSessionProtocol,
    LoggerProtocol,
    RecordStoreProtocol,
    S3ClientProtocol,
)
from .services import (
    AssetLockRegistry,
    AssetProcessingService,
    HttpDownloader,
    ImageProcessorService,
    ReconciliationScanner,
    S3VariantStore,
    VariantPipeline,
)

if TYPE_CHECKING:
    from mypy_boto3_s3.client import S3Client
else:
    S3Client = Any


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str = "media-variants", level: Optional[str] = None) -> LoggerProtocol:
        return StructuredLogger(setup_logger(name, level=level))


class S3ClientFactory:
    """Factory for creating S3 client instances."""

    @staticmethod
    def create_s3_client(settings: StorageSettings) -> S3Client:
        """Create an S3 client; path-style addressing when a custom endpoint (MinIO) is set."""
        client_config = Config(
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
            retries={"max_attempts": 1, "mode": "standard"},
            s3={"addressing_style": "path"} if settings.endpoint_url else None,
        )
        session = boto3.Session(
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
            region_name=settings.region,
        )
        return session.client("s3", endpoint_url=settings.endpoint_url, config=client_config)


@dataclass
class MediaServices:
    """Everything a trigger needs, built once at process start."""

    pipeline: VariantPipeline
    store: S3VariantStore
    processing_service: AssetProcessingService
    scanner: ReconciliationScanner
    record_store: RecordStoreProtocol
    logger: LoggerProtocol
    metrics_collector: Optional[MetricsCollector] = None


class ProcessingPipelineFactory:
    """Factory for creating the complete processing pipeline."""

    @staticmethod
    def create_services(
        record_store: RecordStoreProtocol,
        storage_settings: Optional[StorageSettings] = None,
        pipeline_settings: Optional[PipelineSettings] = None,
        s3_client: Optional[S3ClientProtocol] = None,
        http_session: Optional[HttpSessionProtocol] = None,
        logger: Optional[LoggerProtocol] = None,
        metrics_collector: Optional[MetricsCollector] = None,
        retry_delay: float = 1.0,
    ) -> MediaServices:
        """Wire the downloader, processor, store, orchestrator and scanner together."""
        if storage_settings is None:
            storage_settings = StorageSettings.from_env()
        if pipeline_settings is None:
            pipeline_settings = PipelineSettings.from_env()
        if s3_client is None:
            s3_client = S3ClientFactory.create_s3_client(storage_settings)
        if logger is None:
            logger = LoggerFactory.create_logger("media-variants")

        downloader = HttpDownloader(
            logger, session=http_session, timeout=pipeline_settings.download_timeout
        )
        store = S3VariantStore(s3_client, storage_settings, logger, retry_delay=retry_delay)
        pipeline = VariantPipeline(
            downloader=downloader,
            image_processor=ImageProcessorService(),
            store=store,
            logger=logger,
            settings=pipeline_settings,
            metrics_collector=metrics_collector,
        )
        processing_service = AssetProcessingService(
            pipeline, record_store, logger, locks=AssetLockRegistry()
        )
        scanner = ReconciliationScanner(
            processing_service, record_store, logger, settings=pipeline_settings
        )

        return MediaServices(
            pipeline=pipeline,
            store=store,
            processing_service=processing_service,
            scanner=scanner,
            record_store=record_store,
            logger=logger,
            metrics_collector=metrics_collector,
        )
