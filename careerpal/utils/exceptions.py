"""
Exception types raised by the CareerPal core.
"""


class CareerPalError(Exception):
    """Base exception for CareerPal errors."""
    pass


class ModelLoadError(CareerPalError):
    """Raised when the embedding model cannot be downloaded or initialized."""
    pass


class NotInitializedError(CareerPalError):
    """Raised when an embedding is requested before the model is ready."""
    pass


class StorageError(CareerPalError):
    """Raised when a storage backend fails to read or write."""
    pass


class InvalidEmbeddingError(StorageError, ValueError):
    """Raised when an embedding vector is empty or has the wrong dimension."""
    pass


class RecordNotFoundError(StorageError, LookupError):
    """Raised when an update targets a record that does not exist."""
    pass
