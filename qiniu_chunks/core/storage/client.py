"""
Generic object storage contract.

The chunk store talks to its backend only through this protocol, so a
Qiniu bucket, an in-memory mock, or any other implementation can be
swapped in without touching callers.
"""

from typing import BinaryIO, Optional, Protocol, Union

from .models import StorageCommonPrefix, StorageObject


Content = Union[BinaryIO, bytes, bytearray]


class ObjectClient(Protocol):
    """
    Protocol for chunk object storage.

    All calls block until the remote side answers. ``timeout`` is the
    caller's deadline in seconds for each network call; ``None`` means the
    client's configured default.
    """

    def put_object(
        self,
        key: str,
        content: Content,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """Store ``content`` under ``key``. The stream must be seekable."""
        ...

    def get_object(
        self,
        key: str,
        *,
        timeout: Optional[float] = None,
    ) -> BinaryIO:
        """Open the object for reading. The caller closes the stream."""
        ...

    def list_objects(
        self,
        prefix: str = "",
        delimiter: str = "",
        *,
        timeout: Optional[float] = None,
    ) -> tuple[list[StorageObject], list[StorageCommonPrefix]]:
        """List objects and common prefixes in key order."""
        ...

    def delete_object(
        self,
        key: str,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        """Remove the object stored under ``key``."""
        ...

    def stop(self) -> None:
        """Release whatever the client holds."""
        ...
