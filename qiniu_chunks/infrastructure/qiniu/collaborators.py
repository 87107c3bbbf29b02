"""
Narrow interfaces between the Qiniu adapter and the outside world.

The adapter never talks to the SDK or to HTTP directly. It goes through
these four protocols, which lets tests substitute in-memory fakes and
keeps the vendor's signing and transport details swappable.
"""

from typing import Any, BinaryIO, Optional, Protocol


class Signer(Protocol):
    """Produces upload tokens and request signatures."""

    def upload_token(self, bucket: str, expires: int) -> str:
        """Issue a token allowing uploads into ``bucket`` for ``expires`` seconds."""
        ...

    def sign_url(self, url: str, deadline: int) -> str:
        """Return ``url`` signed for private download until ``deadline`` (unix seconds)."""
        ...


class Response(Protocol):
    """The parts of an HTTP response the adapter reads."""

    status_code: int
    raw: BinaryIO

    def close(self) -> None:
        ...


class Transport(Protocol):
    """Issues object read requests."""

    def get(
        self,
        url: str,
        headers: dict[str, str],
        timeout: Optional[float] = None,
    ) -> Response:
        """GET ``url`` and return the response with its body unread."""
        ...


class BucketDirectory(Protocol):
    """Resolves per-bucket service hosts and performs admin calls."""

    def rs_host(self, bucket: str) -> str:
        """Management host (with scheme) used for deletes."""
        ...

    def rsf_host(self, bucket: str) -> str:
        """Listing host (with scheme)."""
        ...

    def credentialed_call(
        self,
        method: str,
        url: str,
        timeout: Optional[float] = None,
    ) -> Optional[dict[str, Any]]:
        """Perform an authenticated call and return the decoded JSON body, if any."""
        ...


class FormUploader(Protocol):
    """Form upload primitive."""

    def put(
        self,
        token: str,
        key: str,
        stream: BinaryIO,
        size: int,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        """Upload ``size`` bytes from ``stream`` under ``key``."""
        ...
