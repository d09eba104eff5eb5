"""Tests for environment-driven settings."""

import pytest

from media_variants.core.config import PipelineSettings, StorageSettings
from media_variants.core.exceptions import ConfigurationError
from media_variants.core.models import SourceAsset


class TestStorageSettings:
    """Tests for StorageSettings."""

    def test_defaults_from_empty_env(self):
        settings = StorageSettings.from_env({})

        assert settings.bucket_name == "busrom-media"
        assert settings.region == "us-east-1"
        assert settings.endpoint_url is None
        assert settings.cdn_domain is None
        assert settings.read_timeout == 30.0

    def test_from_env(self):
        settings = StorageSettings.from_env(
            {
                "S3_BUCKET_NAME": "media",
                "S3_REGION": "eu-west-1",
                "S3_ENDPOINT": "http://minio:9000",
                "S3_ACCESS_KEY_ID": "key",
                "S3_SECRET_ACCESS_KEY": "secret",
                "CDN_DOMAIN": "cdn.example.com",
                "UPLOAD_TIMEOUT": "12.5",
            }
        )

        assert settings.bucket_name == "media"
        assert settings.region == "eu-west-1"
        assert settings.endpoint_url == "http://minio:9000"
        assert settings.access_key_id == "key"
        assert settings.read_timeout == 12.5

    @pytest.mark.parametrize("value", ["", "NONE"])
    def test_cdn_none_is_unset(self, value):
        settings = StorageSettings.from_env({"CDN_DOMAIN": value, "S3_ENDPOINT": "http://minio:9000"})

        assert settings.cdn_domain is None
        assert settings.public_domain == "http://minio:9000"

    def test_invalid_timeout(self):
        with pytest.raises(ConfigurationError):
            StorageSettings.from_env({"UPLOAD_TIMEOUT": "soon"})

    def test_public_url_includes_bucket(self):
        settings = StorageSettings(bucket_name="media", cdn_domain="cdn.example.com/")

        assert settings.public_url("variants/small/a.jpg") == (
            "https://cdn.example.com/media/variants/small/a.jpg"
        )

    def test_public_url_cloudfront_omits_bucket(self):
        settings = StorageSettings(bucket_name="media", cdn_domain="d111.cloudfront.net")

        assert settings.is_cloudfront
        assert settings.public_url("/variants/small/a.jpg") == (
            "https://d111.cloudfront.net/variants/small/a.jpg"
        )

    def test_public_url_falls_back_to_local_endpoint(self):
        settings = StorageSettings(bucket_name="media")

        assert settings.public_url("a.jpg") == "http://localhost:9000/media/a.jpg"

    def test_source_url_prefers_original(self):
        settings = StorageSettings(bucket_name="media", cdn_domain="http://cdn.test")
        asset = SourceAsset(id="1", filename="a", original_url="http://elsewhere/a.jpg", file_id="abc")

        assert settings.source_url_for(asset) == "http://elsewhere/a.jpg"

    def test_source_url_from_file_id(self):
        settings = StorageSettings(bucket_name="media", cdn_domain="http://cdn.test")

        assert settings.source_url_for(
            SourceAsset(id="1", filename="a", file_id="abc", extension=".png")
        ) == "http://cdn.test/media/abc.png"
        assert settings.source_url_for(
            SourceAsset(id="1", filename="a", file_id="abc")
        ) == "http://cdn.test/media/abc.jpg"
        assert settings.source_url_for(SourceAsset(id="1", filename="a")) is None


class TestPipelineSettings:
    """Tests for PipelineSettings."""

    def test_defaults(self):
        settings = PipelineSettings.from_env({})

        assert settings.download_timeout == 30.0
        assert settings.asset_timeout == 300.0
        assert settings.variant_workers == 3
        assert settings.scan_workers == 1
        assert settings.reuse_existing is False

    def test_from_env(self):
        settings = PipelineSettings.from_env(
            {
                "DOWNLOAD_TIMEOUT": "5",
                "ASSET_TIMEOUT": "60",
                "VARIANT_WORKERS": "6",
                "SCAN_WORKERS": "4",
                "REUSE_EXISTING_VARIANTS": "true",
            }
        )

        assert settings.download_timeout == 5.0
        assert settings.asset_timeout == 60.0
        assert settings.variant_workers == 6
        assert settings.scan_workers == 4
        assert settings.reuse_existing is True

    @pytest.mark.parametrize(
        "env",
        [{"VARIANT_WORKERS": "0"}, {"SCAN_WORKERS": "-1"}, {"ASSET_TIMEOUT": "never"}],
    )
    def test_invalid_values(self, env):
        with pytest.raises(ConfigurationError):
            PipelineSettings.from_env(env)
