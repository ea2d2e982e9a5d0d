"""Storage configuration for S3-compatible object storage.

Supports both MinIO (development) and AWS S3 (production) with the same
interface. Originals and page previews live in separate buckets.
"""

from dataclasses import dataclass
from typing import Optional

from ...config import Settings


@dataclass
class StorageConfig:
    """Configuration for S3-compatible object storage.

    Attributes:
        endpoint_url: S3 endpoint URL ('http://localhost:9000' for MinIO,
                      None for AWS S3 default regional endpoints)
        access_key: S3 access key ID
        secret_key: S3 secret access key
        upload_bucket: Bucket holding original menu documents
        preview_bucket: Bucket holding rendered page previews
        region: AWS region (default: 'us-east-1')
    """
    endpoint_url: Optional[str]
    access_key: str
    secret_key: str
    upload_bucket: str = "menu-uploads"
    preview_bucket: str = "menu-previews"
    region: str = "us-east-1"


def load_storage_config(settings: Settings) -> StorageConfig:
    """Build storage configuration from application settings.

    Raises:
        ValueError: If the configuration is incomplete
    """
    config = StorageConfig(
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        access_key=settings.S3_ACCESS_KEY_ID,
        secret_key=settings.S3_SECRET_ACCESS_KEY,
        upload_bucket=settings.S3_UPLOAD_BUCKET,
        preview_bucket=settings.S3_PREVIEW_BUCKET,
        region=settings.S3_REGION,
    )
    validate_storage_config(config)
    return config


def validate_storage_config(config: StorageConfig) -> None:
    """Validate storage configuration.

    Raises:
        ValueError: If configuration is invalid
    """
    if not config.access_key or not config.secret_key:
        raise ValueError(
            "Missing required storage credentials. "
            "Set S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY environment variables."
        )

    if not config.upload_bucket or not config.preview_bucket:
        raise ValueError("Storage upload_bucket and preview_bucket are required")

    if config.endpoint_url and not config.endpoint_url.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid endpoint_url: {config.endpoint_url}. "
            "Must start with http:// or https://"
        )
