"""Core module for configuration and utilities."""

from tubely.core.config import Settings
from tubely.core.database import Base, get_db
from tubely.core.storage import ObjectLocation, StorageBackend, create_storage

__all__ = [
    "Settings",
    "Base",
    "get_db",
    "ObjectLocation",
    "StorageBackend",
    "create_storage",
]
