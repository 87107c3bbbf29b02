"""
Object storage contract, result types and errors.

Framework-agnostic: nothing here imports the vendor SDK or requests.
"""

from .client import Content, ObjectClient
from .errors import (
    ConfigError,
    HTTPStatusError,
    ServiceError,
    StorageError,
    TransportError,
)
from .models import ListPage, StorageCommonPrefix, StorageObject, put_time_to_datetime

__all__ = [
    "Content",
    "ObjectClient",
    "ConfigError",
    "HTTPStatusError",
    "ServiceError",
    "StorageError",
    "TransportError",
    "ListPage",
    "StorageCommonPrefix",
    "StorageObject",
    "put_time_to_datetime",
]
