"""
Storage abstractions.
"""

from bulletin.storage.base import (
    MetadataStorage,
    StorageProvider,
    Collections,
)
from bulletin.storage.local import InMemoryMetadataStorage, create_local_storage

__all__ = [
    "MetadataStorage",
    "StorageProvider",
    "Collections",
    "InMemoryMetadataStorage",
    "create_local_storage",
]
