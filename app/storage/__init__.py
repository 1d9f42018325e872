"""Blob storage backends."""

from .backend import BlobEntry, LocalStorage, StorageBackend
from .factory import build_storage

__all__ = [
    "BlobEntry",
    "LocalStorage",
    "StorageBackend",
    "build_storage",
]
