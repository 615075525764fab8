"""Blob storage for artwork images.

One interface, two backends selected at composition time:
- Local filesystem storage under a fixed upload directory
- S3-compatible remote object storage
"""

from .base import BlobStore, StorageLocator, generate_blob_name
from .factory import create_blob_store
from .implementations import LocalBlobStore, S3BlobStore

__all__ = [
    "BlobStore",
    "StorageLocator",
    "LocalBlobStore",
    "S3BlobStore",
    "create_blob_store",
    "generate_blob_name",
]
