"""Factory selecting the blob store implementation at composition time."""

from pathlib import Path

from ..config import Settings
from ..logging import get_logger
from .base import BlobStore
from .implementations.local import LocalBlobStore
from .implementations.s3 import S3BlobStore

logger = get_logger(__name__)


def create_blob_store(settings: Settings) -> BlobStore:
    """Create the configured blob store.

    Args:
        settings: Application settings; ``storage_backend`` picks 'local' or 's3'

    Returns:
        BlobStore instance

    Raises:
        ValueError: If the backend is unknown or its configuration is incomplete
    """
    backend = settings.storage_backend.lower()

    if backend == "local":
        store: BlobStore = LocalBlobStore(
            base_path=Path(settings.upload_dir),
            public_url_base=settings.public_url_base,
        )
    elif backend == "s3":
        if not settings.s3_bucket:
            raise ValueError("S3 storage requires S3_BUCKET to be configured")
        store = S3BlobStore(
            bucket=settings.s3_bucket,
            region=settings.s3_region,
            folder=settings.s3_folder,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            endpoint_url=settings.s3_endpoint_url,
            cloudfront_domain=settings.s3_cloudfront_domain,
            timeout=settings.storage_timeout_seconds,
        )
    else:
        raise ValueError(f"Unknown storage backend: {settings.storage_backend}")

    logger.info("Blob store configured", backend=store.name)
    return store
