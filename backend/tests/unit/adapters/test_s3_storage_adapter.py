"""Unit tests for S3StorageAdapter using moto"""

from urllib.parse import parse_qs, urlparse

import boto3
import pytest
from moto import mock_aws

from menuflow.config import Settings
from menuflow.infrastructure.storage.s3_storage_adapter import S3StorageAdapter, StorageError
from menuflow.infrastructure.storage.storage_config import (
    StorageConfig,
    load_storage_config,
    validate_storage_config,
)

TEST_REGION = "us-east-1"
UPLOAD_BUCKET = "test-menu-uploads"
PREVIEW_BUCKET = "test-menu-previews"
KEY = "tenant/ingestion/menu.pdf"


def _config(**overrides) -> StorageConfig:
    values = dict(
        endpoint_url=None,
        access_key="test-access-key",
        secret_key="test-secret-key",
        upload_bucket=UPLOAD_BUCKET,
        preview_bucket=PREVIEW_BUCKET,
        region=TEST_REGION,
    )
    values.update(overrides)
    return StorageConfig(**values)


@pytest.fixture
def s3_client():
    with mock_aws():
        client = boto3.client(
            "s3",
            region_name=TEST_REGION,
            aws_access_key_id="test-access-key",
            aws_secret_access_key="test-secret-key",
        )
        client.create_bucket(Bucket=UPLOAD_BUCKET)
        client.create_bucket(Bucket=PREVIEW_BUCKET)
        yield client


@pytest.fixture
def storage(s3_client) -> S3StorageAdapter:
    return S3StorageAdapter(_config())


class TestPresignedUrls:

    @pytest.mark.asyncio
    async def test_upload_url_targets_upload_bucket(self, storage):
        url = await storage.generate_presigned_upload_url(KEY, "application/pdf", expires_in_seconds=900)

        parsed = urlparse(url)
        assert UPLOAD_BUCKET in parsed.netloc + parsed.path
        assert parsed.path.endswith(KEY)
        query = parse_qs(parsed.query)
        assert "X-Amz-Expires" in query or "Expires" in query

    @pytest.mark.asyncio
    async def test_download_url_for_existing_object(self, storage, s3_client):
        s3_client.put_object(Bucket=UPLOAD_BUCKET, Key=KEY, Body=b"%PDF-1.7")

        url = await storage.generate_presigned_url(KEY, expires_in_seconds=600)

        assert urlparse(url).path.endswith(KEY)

    @pytest.mark.asyncio
    async def test_download_url_for_missing_object(self, storage):
        with pytest.raises(StorageError) as exc_info:
            await storage.generate_presigned_url("tenant/ingestion/never-uploaded.pdf")
        assert exc_info.value.code == "document_missing"


class TestPreviews:

    @pytest.mark.asyncio
    async def test_store_preview_writes_to_preview_bucket(self, storage, s3_client):
        key = await storage.store_preview("tenant/ingestion/page-001.png", b"png-bytes", "image/png")

        stored = s3_client.get_object(Bucket=PREVIEW_BUCKET, Key=key)
        assert stored["Body"].read() == b"png-bytes"
        assert stored["ContentType"] == "image/png"

    @pytest.mark.asyncio
    async def test_store_preview_missing_bucket(self, s3_client):
        storage = S3StorageAdapter(_config(preview_bucket="does-not-exist"))

        with pytest.raises(StorageError) as exc_info:
            await storage.store_preview("tenant/ingestion/page-001.png", b"x", "image/png")
        assert exc_info.value.code == "preview_upload_failed"


class TestBucketVerification:

    @pytest.mark.asyncio
    async def test_buckets_exist(self, storage):
        assert await storage.verify_buckets_exist() is True

    @pytest.mark.asyncio
    async def test_missing_bucket(self, s3_client):
        storage = S3StorageAdapter(_config(upload_bucket="missing-uploads"))

        with pytest.raises(StorageError):
            await storage.verify_buckets_exist()


class TestStorageConfig:

    def test_load_from_settings(self):
        settings = Settings(
            S3_ENDPOINT_URL="http://localhost:9000",
            S3_UPLOAD_BUCKET="uploads",
            S3_PREVIEW_BUCKET="previews",
        )

        config = load_storage_config(settings)

        assert config.endpoint_url == "http://localhost:9000"
        assert config.upload_bucket == "uploads"
        assert config.preview_bucket == "previews"

    def test_missing_credentials(self):
        with pytest.raises(ValueError):
            validate_storage_config(_config(access_key=""))

    def test_invalid_endpoint(self):
        with pytest.raises(ValueError):
            validate_storage_config(_config(endpoint_url="localhost:9000"))
