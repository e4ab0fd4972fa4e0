"""
Storage adapters for CareerPal.

The backend is chosen by configuration (``storage.provider``):
- ``local``: LocalStorageAdapter, in-process with a JSON snapshot
- ``mongodb``: MongoStorageAdapter, MongoDB via Motor
"""

from typing import Optional

from careerpal.utils.config import get_settings

from .base import StorageAdapter
from .local import LocalStorageAdapter
from .mongodb import MongoStorageAdapter


def get_storage_adapter(
    provider: Optional[str] = None,
    **kwargs,
) -> StorageAdapter:
    """
    Factory function to get a storage adapter instance.

    Args:
        provider: Storage provider ('local' or 'mongodb').
                  Defaults to config setting.
        **kwargs: Additional arguments for the adapter.

    Returns:
        StorageAdapter instance.
    """
    settings = get_settings()
    provider = provider or settings.storage.provider
    kwargs.setdefault("dimension", settings.ml.embedding_dimension)

    if provider == "local":
        if settings.storage.persist:
            kwargs.setdefault("persist_path", settings.storage.persist_path)
        return LocalStorageAdapter(**kwargs)
    elif provider == "mongodb":
        return MongoStorageAdapter(**kwargs)
    else:
        raise ValueError(f"Unknown storage provider: {provider}")


__all__ = [
    "StorageAdapter",
    "LocalStorageAdapter",
    "MongoStorageAdapter",
    "get_storage_adapter",
]
