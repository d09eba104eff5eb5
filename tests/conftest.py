"""Shared fixtures wiring the pipeline against in-memory fakes."""

import pytest

from media_variants.core.config import PipelineSettings, StorageSettings
from media_variants.core.factories import ProcessingPipelineFactory
from media_variants.testing.fakes import (
    TEST_BUCKET,
    TEST_CDN,
    FakeLogger,
    setup_test_environment,
)


@pytest.fixture
def storage_settings():
    return StorageSettings(bucket_name=TEST_BUCKET, cdn_domain=TEST_CDN)


@pytest.fixture
def fake_env():
    """(s3_client, http_session, record_store) seeded with three media rows."""
    return setup_test_environment(count=3)


@pytest.fixture
def build_services(fake_env, storage_settings):
    """Build MediaServices over the fakes; keyword args override pipeline settings."""
    s3_client, http_session, record_store = fake_env

    def _build(record_store=record_store, logger=None, **pipeline_overrides):
        return ProcessingPipelineFactory.create_services(
            record_store,
            storage_settings=storage_settings,
            pipeline_settings=PipelineSettings(**pipeline_overrides),
            s3_client=s3_client,
            http_session=http_session,
            logger=logger or FakeLogger(),
            retry_delay=0,
        )

    return _build
