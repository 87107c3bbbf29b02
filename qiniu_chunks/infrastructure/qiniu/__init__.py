"""
Qiniu Kodo backend for chunk storage.

Implements the ObjectClient protocol from core.storage.
"""

from .client import MockObjectClient, QiniuObjectClient, create_object_client
from .config import AccessFlag, QiniuConfig, parse_access_flags
from .regions import KNOWN_REGION_IDS, resolve_region

__all__ = [
    "MockObjectClient",
    "QiniuObjectClient",
    "create_object_client",
    "AccessFlag",
    "QiniuConfig",
    "parse_access_flags",
    "KNOWN_REGION_IDS",
    "resolve_region",
]
