"""Testing utilities and fakes for the media variants pipeline."""

from .fakes import (
    TEST_BUCKET,
    TEST_CDN,
    FakeHttpSession,
    FakeLogger,
    FakeResponse,
    FakeS3Client,
    S3Bucket,
    S3Object,
    create_test_image,
    create_transparent_png,
    setup_test_environment,
    source_url,
)

__all__ = [
    "TEST_BUCKET",
    "TEST_CDN",
    "FakeHttpSession",
    "FakeLogger",
    "FakeResponse",
    "FakeS3Client",
    "S3Bucket",
    "S3Object",
    "create_test_image",
    "create_transparent_png",
    "setup_test_environment",
    "source_url",
]
