import pytest

from media_variants.core.exceptions import (
    FATAL_ASSET_ERRORS,
    DecodeError,
    DownloadError,
    MediaVariantsError,
    TranscodeError,
    UploadError,
    translate_errors,
)


def test_translate_errors_wraps_foreign_exception() -> None:
    with pytest.raises(DecodeError, match="Cannot decode: boom") as exc_info:
        with translate_errors(DecodeError, "Cannot decode"):
            raise ValueError("boom")

    assert isinstance(exc_info.value.__cause__, ValueError)


def test_translate_errors_without_message() -> None:
    with pytest.raises(UploadError, match="^boom$"):
        with translate_errors(UploadError):
            raise OSError("boom")


def test_translate_errors_passes_taxonomy_through() -> None:
    original = TranscodeError("already classified")

    with pytest.raises(TranscodeError) as exc_info:
        with translate_errors(UploadError, "Upload failed"):
            raise original

    assert exc_info.value is original


def test_translate_errors_no_exception() -> None:
    with translate_errors(DecodeError):
        value = 1
    assert value == 1


def test_fatal_errors_share_base() -> None:
    assert DownloadError in FATAL_ASSET_ERRORS
    assert DecodeError in FATAL_ASSET_ERRORS
    assert all(issubclass(cls, MediaVariantsError) for cls in FATAL_ASSET_ERRORS)
