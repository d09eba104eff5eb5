"""Post-create hook: process a freshly uploaded media row."""

from typing import Optional

from .core.exceptions import MediaVariantsError
from .core.models import ProcessingResult
from .core.protocols import LoggerProtocol, RecordStoreProtocol
from .core.services import AssetProcessingService


def handle_asset_created(
    asset_id: str,
    record_store: RecordStoreProtocol,
    processing_service: AssetProcessingService,
    logger: LoggerProtocol,
) -> Optional[ProcessingResult]:
    """
    Generate metadata and variants for a media row right after it is created.

    Never raises: a failed optimization must not block the upload. The row
    stays eligible for reconciliation when nothing could be written.

    Returns:
        The persisted ProcessingResult, or None when skipped or failed
    """
    try:
        asset = record_store.get_asset(asset_id)
    except Exception as exc:  # noqa: BLE001
        logger.error(f"[Media Hook] Could not load media {asset_id}: {exc}")
        return None
    if asset is None:
        logger.warning(f"[Media Hook] Media {asset_id} not found, skipping")
        return None
    if not asset.has_source:
        logger.info(f"[Media Hook] No file uploaded for {asset.filename}, skipping optimization")
        return None

    logger.info(f"[Media Hook] Processing image optimization for: {asset.filename}")
    try:
        result = processing_service.process_and_persist(asset)
    except MediaVariantsError as exc:
        logger.error(f"[Media Hook] Image optimization failed for {asset.filename}: {exc}")
        return None
    except Exception as exc:  # noqa: BLE001
        logger.error(
            f"[Media Hook] Unexpected {type(exc).__name__} optimizing {asset.filename}: {exc}"
        )
        return None

    logger.info(
        f"[Media Hook] Image optimization completed for: {asset.filename} "
        f"({len(result.variants)} variants, status={result.status.value})"
    )
    return result
