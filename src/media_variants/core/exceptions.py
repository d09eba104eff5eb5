"""Error taxonomy for the media variants pipeline."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Type

from .logging_config import get_logger


class MediaVariantsError(Exception):
    """Base exception for all media variants errors."""


class DownloadError(MediaVariantsError):
    """The original could not be fetched. Fatal for the asset."""


class DecodeError(MediaVariantsError):
    """The original is corrupt or in an unsupported format. Fatal for the asset."""


class VariantGenerationError(MediaVariantsError):
    """A single size profile could not be produced."""


class TranscodeError(MediaVariantsError):
    """The WebP rendition could not be produced."""


class UploadError(MediaVariantsError):
    """An object could not be written to (or probed in) object storage."""


class PersistError(MediaVariantsError):
    """The record store rejected the metadata/variants update."""


class ConfigurationError(MediaVariantsError):
    """Error raised for invalid configuration options."""


class AssetBusyError(MediaVariantsError):
    """Another trigger in this process is already working on the asset."""


# Errors after which nothing is written for the asset.
FATAL_ASSET_ERRORS = (DownloadError, DecodeError)


@contextmanager
def translate_errors(
    error_cls: Type[MediaVariantsError], message: str = ""
) -> Iterator[None]:
    """Re-raise foreign exceptions from the wrapped block as ``error_cls``.

    Errors that already belong to the taxonomy pass through untouched.
    """
    try:
        yield
    except MediaVariantsError:
        raise
    except Exception as exc:  # noqa: BLE001
        detail = f"{message}: {exc}" if message else str(exc)
        get_logger("media-variants.errors").debug(
            f"Translating {type(exc).__name__} into {error_cls.__name__}: {detail}"
        )
        raise error_cls(detail) from exc
