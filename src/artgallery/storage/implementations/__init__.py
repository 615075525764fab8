"""Blob store implementations."""

from .local import LocalBlobStore
from .s3 import S3BlobStore

__all__ = ["LocalBlobStore", "S3BlobStore"]
