"""
Exception hierarchy for object storage operations.

Every public operation of an object client raises one of these. Nothing
is retried or swallowed below this layer; callers decide what to do.
"""

from typing import Optional, Sequence

from .models import StorageCommonPrefix, StorageObject


# Qiniu answers 612 when the target key does not exist
QINIU_NO_SUCH_ENTRY = 612


class StorageError(Exception):
    """
    Base class for storage failures.

    When a failure interrupts a paginated listing, the listing attaches
    what it gathered before the failure as ``partial_objects`` and
    ``partial_prefixes``. They must not be trusted as a complete listing.
    Every other error leaves them empty.
    """

    partial_objects: Sequence[StorageObject] = ()
    partial_prefixes: Sequence[StorageCommonPrefix] = ()


class ConfigError(StorageError):
    """Raised when construction input cannot produce a usable client."""
    pass


class TransportError(StorageError):
    """
    Raised when a request never produced an HTTP response.

    The underlying network exception is chained as ``__cause__``.
    """
    pass


class HTTPStatusError(StorageError):
    """Raised when an object read returns anything other than 200."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"http status {status_code}")
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class ServiceError(StorageError):
    """
    Raised when the vendor API rejects a call.

    The vendor's error text is kept verbatim in ``message``.
    """

    def __init__(
        self,
        status_code: int,
        message: str = "",
        request_id: Optional[str] = None,
    ) -> None:
        super().__init__(f"service error {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.request_id = request_id

    @property
    def is_not_found(self) -> bool:
        return self.status_code in (404, QINIU_NO_SUCH_ENTRY)
