"""S3 Storage Adapter - Implementation of ObjectStoragePort using boto3.

Clients upload originals directly through presigned PUT URLs; the page
converter reads them back through presigned GET URLs. Page previews are
written by the pipeline with put_object.

Architecture: Hexagonal - Adapter implementation in infrastructure layer
"""

import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ...domain.ingestion.errors import StorageFailure
from ...domain.ingestion.ports import ObjectStoragePort
from .storage_config import StorageConfig

logger = logging.getLogger(__name__)


class StorageError(StorageFailure):
    """Base exception for storage operations."""
    pass


class S3StorageAdapter(ObjectStoragePort):
    """S3-compatible storage adapter using boto3.

    Example:
        storage = S3StorageAdapter(load_storage_config(get_settings()))
        url = await storage.generate_presigned_upload_url(
            "tenant/ingestion/menu.pdf", "application/pdf", expires_in_seconds=900
        )
    """

    def __init__(self, config: StorageConfig):
        """Initialize S3 storage adapter.

        Raises:
            StorageError: If S3 client initialization fails
        """
        try:
            self.s3_client = boto3.client(
                "s3",
                endpoint_url=config.endpoint_url,
                aws_access_key_id=config.access_key,
                aws_secret_access_key=config.secret_key,
                region_name=config.region,
            )
        except NoCredentialsError as e:
            raise StorageError(f"Invalid S3 credentials: {e}")
        except (BotoCoreError, ValueError) as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

        self.upload_bucket = config.upload_bucket
        self.preview_bucket = config.preview_bucket

        logger.info(
            f"Initialized S3 storage adapter: uploads={config.upload_bucket}, "
            f"previews={config.preview_bucket}, endpoint={config.endpoint_url or 'AWS S3'}"
        )

    async def generate_presigned_upload_url(
        self,
        storage_key: str,
        content_type: str,
        expires_in_seconds: int = 900,
    ) -> str:
        try:
            return self.s3_client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self.upload_bucket,
                    "Key": storage_key,
                    "ContentType": content_type,
                },
                ExpiresIn=expires_in_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to sign upload for {storage_key}: {e}")
            raise StorageError("Unable to create upload URL", code="signed_upload_failed")

    async def generate_presigned_url(
        self,
        storage_key: str,
        expires_in_seconds: int = 600,
    ) -> str:
        """Generate a download URL for an uploaded original.

        Raises:
            StorageError: code `document_missing` when nothing was uploaded at
                storage_key, `signed_download_failed` on any other failure
        """
        try:
            self.s3_client.head_object(Bucket=self.upload_bucket, Key=storage_key)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                raise StorageError("Uploaded menu document not found", code="document_missing")
            logger.error(f"Failed to check {storage_key}: {error_code}")
            raise StorageError("Unable to access uploaded document", code="signed_download_failed")
        except BotoCoreError as e:
            logger.error(f"Failed to check {storage_key}: {e}")
            raise StorageError("Unable to access uploaded document", code="signed_download_failed")

        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.upload_bucket, "Key": storage_key},
                ExpiresIn=expires_in_seconds,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to sign download for {storage_key}: {e}")
            raise StorageError("Unable to create download URL", code="signed_download_failed")

    async def store_preview(self, storage_key: str, data: bytes, content_type: str) -> str:
        try:
            self.s3_client.put_object(
                Bucket=self.preview_bucket,
                Key=storage_key,
                Body=data,
                ContentType=content_type,
            )
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"Failed to store preview {storage_key}: {error_code}")
            raise StorageError("Unable to store page preview", code="preview_upload_failed")
        except BotoCoreError as e:
            logger.error(f"Failed to store preview {storage_key}: {e}")
            raise StorageError("Unable to store page preview", code="preview_upload_failed")

        logger.debug(f"Stored preview {storage_key} ({len(data)} bytes)")
        return storage_key

    async def verify_buckets_exist(self) -> bool:
        """Check that both buckets exist and are accessible.

        Raises:
            StorageError: If a bucket is missing or cannot be checked
        """
        for bucket in (self.upload_bucket, self.preview_bucket):
            try:
                self.s3_client.head_bucket(Bucket=bucket)
            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code", "Unknown")
                raise StorageError(f"Bucket {bucket} is not accessible: {error_code}")
        return True
