"""
Qiniu Kodo object client for chunk storage.

Implements the generic ``ObjectClient`` contract on top of four narrow
collaborators (signer, transport, bucket directory, form uploader). The
only policy living here is:

- upload token caching (reuse for an hour, refresh lazily)
- read URL construction (public or signed, chosen once at construction)
- marker-based pagination for listings

Every call is synchronous and blocks for its network round trips. Apart
from the SDK trying the next upload endpoint when one is unreachable, no
call is retried; the first error reaches the caller.

An in-memory ``MockObjectClient`` with the same contract supports local
development and tests without a bucket.
"""

import base64
import io
import logging
import threading
import time
from datetime import datetime, timezone
from typing import BinaryIO, Callable, Optional
from urllib.parse import quote, quote_plus, urlencode

import requests

from ...core.storage.client import Content, ObjectClient
from ...core.storage.errors import (
    ConfigError,
    HTTPStatusError,
    QINIU_NO_SUCH_ENTRY,
    ServiceError,
    StorageError,
)
from ...core.storage.models import ListPage, StorageCommonPrefix, StorageObject
from .collaborators import BucketDirectory, FormUploader, Signer, Transport
from .config import AccessFlag, QiniuConfig
from .regions import Region, resolve_region
from .sdk import (
    QiniuSigner,
    RegionDirectory,
    RequestsTransport,
    SdkFormUploader,
    endpoint,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]

# Client-side reuse window for an upload token. The token itself is issued
# with a longer server-side expiry.
TOKEN_REUSE_SECONDS = 3600
TOKEN_POLICY_EXPIRES = 4000

PRIVATE_URL_LIFETIME = 3600
LIST_PAGE_LIMIT = 1000
USER_AGENT = "storage"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def content_length(stream: BinaryIO) -> int:
    """
    Measure a stream and rewind it to the start.

    Streams that already know their length (``__len__`` or a BytesIO-style
    ``getbuffer``) are asked directly; anything else is measured by seeking
    to the end. The stream must be seekable either way, since it is
    uploaded from position 0.
    """
    seekable = getattr(stream, "seekable", None)
    if not callable(getattr(stream, "seek", None)) or (seekable and not seekable()):
        raise ValueError("content stream must be seekable")

    if hasattr(stream, "__len__"):
        size = len(stream)
    elif hasattr(stream, "getbuffer"):
        with stream.getbuffer() as view:
            size = view.nbytes
    else:
        size = stream.seek(0, io.SEEK_END)

    stream.seek(0, io.SEEK_SET)
    return size


def as_stream(content: Content) -> BinaryIO:
    """Wrap raw bytes in a BytesIO; streams pass through unchanged."""
    if isinstance(content, (bytes, bytearray)):
        return io.BytesIO(content)
    return content


def encoded_entry(bucket: str, key: str) -> str:
    """URL-safe base64 of ``bucket:key``, the vendor's object address."""
    return base64.urlsafe_b64encode(f"{bucket}:{key}".encode("utf-8")).decode("ascii")


def list_files_url(host: str, bucket: str, prefix: str, delimiter: str) -> str:
    """
    Base listing URL; the URL-escaped marker is appended per request.
    """
    query = [("bucket", bucket), ("limit", str(LIST_PAGE_LIMIT))]
    if prefix:
        query.append(("prefix", prefix))
    if delimiter:
        query.append(("delimiter", delimiter))
    return f"{host}/list?{urlencode(sorted(query))}&marker="


def read_base_url(url: str, use_https: bool) -> str:
    """Normalise the configured read domain for the chosen scheme."""
    url = url.rstrip("/")
    if "://" not in url:
        return endpoint(use_https, url)
    if use_https and url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url


# ---------------------------------------------------------------------------
# Upload Token Cache
# ---------------------------------------------------------------------------

class UploadTokenCache:
    """
    The adapter's single upload-token slot.

    A token is reused while ``now - issued_at <= TOKEN_REUSE_SECONDS`` and
    replaced lazily on the next write after that. The check and the
    refresh run under one lock, so concurrent writers on the same client
    see a single refresh.
    """

    def __init__(
        self,
        signer: Signer,
        bucket: str,
        clock: Clock = time.time,
        max_age: int = TOKEN_REUSE_SECONDS,
        policy_expires: int = TOKEN_POLICY_EXPIRES,
    ) -> None:
        self._signer = signer
        self._bucket = bucket
        self._clock = clock
        self._max_age = max_age
        self._policy_expires = policy_expires
        self._lock = threading.Lock()
        self._token = ""
        self._issued_at = 0.0

    def get(self) -> str:
        with self._lock:
            now = self._clock()
            if not self._token or now - self._issued_at > self._max_age:
                self._token = self._signer.upload_token(self._bucket, self._policy_expires)
                self._issued_at = now
                logger.debug(
                    "Issued upload token",
                    extra={"bucket": self._bucket, "issued_at": now},
                )
            return self._token


# ---------------------------------------------------------------------------
# Read URL Strategies
# ---------------------------------------------------------------------------

class PublicUrlStrategy:
    """Deterministic ``base/key`` URLs for publicly readable buckets."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url

    def __call__(self, key: str) -> str:
        return f"{self.base_url}/{quote(key, safe='/')}"


class PrivateUrlStrategy:
    """
    Signed URLs for private buckets.

    Each call signs a fresh URL expiring ``lifetime`` seconds from now,
    so two calls a second apart produce different URLs.
    """

    def __init__(
        self,
        base_url: str,
        signer: Signer,
        clock: Clock = time.time,
        lifetime: int = PRIVATE_URL_LIFETIME,
    ) -> None:
        self._public = PublicUrlStrategy(base_url)
        self._signer = signer
        self._clock = clock
        self._lifetime = lifetime

    @property
    def base_url(self) -> str:
        return self._public.base_url

    def __call__(self, key: str) -> str:
        deadline = int(self._clock()) + self._lifetime
        return self._signer.sign_url(self._public(key), deadline)


# ---------------------------------------------------------------------------
# Qiniu Client
# ---------------------------------------------------------------------------

class QiniuObjectClient:
    """
    Chunk object client for one Qiniu bucket.

    Collaborators default to the SDK/requests implementations. Reads and
    management calls share one ``requests.Session`` owned by this client;
    uploads go through the SDK's own HTTP client. Pass collaborators
    explicitly to substitute fakes. ``clock`` supplies unix seconds for token ageing and
    URL expiry.

    The upload token slot is the only mutable state, and it is guarded by
    a lock (see ``UploadTokenCache``).
    """

    def __init__(
        self,
        config: QiniuConfig,
        *,
        signer: Optional[Signer] = None,
        transport: Optional[Transport] = None,
        directory: Optional[BucketDirectory] = None,
        uploader: Optional[FormUploader] = None,
        clock: Clock = time.time,
    ) -> None:
        self._config = config
        self._bucket = config.bucket
        self._flags = config.access_flags

        use_https = AccessFlag.HTTPS in self._flags
        use_cdn = AccessFlag.CDN in self._flags
        self._region = resolve_region(config.region, use_cdn=use_cdn)

        if signer is None:
            signer = QiniuSigner(config.access_key, config.secret_key)

        self._session: Optional[requests.Session] = None
        if transport is None or directory is None:
            self._session = requests.Session()

        if transport is None:
            transport = RequestsTransport(self._session)
        if directory is None:
            request_auth = getattr(signer, "request_auth", None)
            if not callable(request_auth):
                self.stop()
                raise ConfigError("a bucket directory is required when the signer has no request auth")
            directory = RegionDirectory(self._region, use_https, request_auth, self._session)
        if uploader is None:
            uploader = SdkFormUploader(self._bucket, self._region, use_https)

        self._signer = signer
        self._transport = transport
        self._directory = directory
        self._uploader = uploader
        self._tokens = UploadTokenCache(signer, self._bucket, clock)

        base_url = read_base_url(config.url, use_https)
        if AccessFlag.PRIVATE in self._flags:
            self._make_url: Callable[[str], str] = PrivateUrlStrategy(base_url, signer, clock)
        else:
            self._make_url = PublicUrlStrategy(base_url)

        logger.info(
            "Initialized Qiniu object client",
            extra={
                "bucket": self._bucket,
                "region": self._region.region_id,
                "https": use_https,
                "cdn": use_cdn,
                "private": AccessFlag.PRIVATE in self._flags,
            },
        )

    @property
    def bucket(self) -> str:
        return self._bucket

    @property
    def access_flags(self) -> AccessFlag:
        return self._flags

    @property
    def region(self) -> Region:
        return self._region

    def object_url(self, key: str) -> str:
        """Read URL for ``key``; signed URLs are regenerated on every call."""
        return self._make_url(key)

    def _timeout(self, timeout: Optional[float]) -> float:
        return self._config.timeout_seconds if timeout is None else timeout

    def put_object(
        self,
        key: str,
        content: Content,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        stream = as_stream(content)
        size = content_length(stream)
        token = self._tokens.get()
        self._uploader.put(token, key, stream, size, timeout=self._timeout(timeout))

    def get_object(
        self,
        key: str,
        *,
        timeout: Optional[float] = None,
    ) -> BinaryIO:
        response = self._transport.get(
            self._make_url(key),
            headers={"User-Agent": USER_AGENT},
            timeout=self._timeout(timeout),
        )

        if response.status_code != 200:
            response.close()
            raise HTTPStatusError(response.status_code)

        return response.raw

    def list_objects(
        self,
        prefix: str = "",
        delimiter: str = "",
        *,
        timeout: Optional[float] = None,
    ) -> tuple[list[StorageObject], list[StorageCommonPrefix]]:
        """
        List the bucket one page of ``LIST_PAGE_LIMIT`` at a time.

        Pages are fetched strictly one after another. If a page request
        fails, its ``TransportError`` or ``ServiceError`` is raised as is,
        with whatever was gathered before it attached as
        ``partial_objects`` and ``partial_prefixes``.
        """
        timeout = self._timeout(timeout)
        host = self._directory.rsf_host(self._bucket)
        base = list_files_url(host, self._bucket, prefix, delimiter)

        objects: list[StorageObject] = []
        prefixes: list[StorageCommonPrefix] = []
        marker = ""

        while True:
            try:
                payload = self._directory.credentialed_call(
                    "POST", base + quote_plus(marker), timeout=timeout
                )
            except StorageError as e:
                e.partial_objects = objects
                e.partial_prefixes = prefixes
                raise

            page = ListPage.from_response(payload or {})
            objects.extend(page.items)
            prefixes.extend(page.common_prefixes)

            logger.debug(
                "Listed page",
                extra={
                    "bucket": self._bucket,
                    "prefix": prefix,
                    "items": len(page.items),
                    "prefixes": len(page.common_prefixes),
                    "last": page.is_last,
                },
            )

            if page.is_last:
                break
            marker = page.marker

        return objects, prefixes

    def delete_object(
        self,
        key: str,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        host = self._directory.rs_host(self._bucket)
        url = f"{host}/delete/{encoded_entry(self._bucket, key)}"
        self._directory.credentialed_call("POST", url, timeout=self._timeout(timeout))

        logger.debug("Deleted object", extra={"bucket": self._bucket, "key": key})

    def stop(self) -> None:
        """Close the HTTP session this client created, if any."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "QiniuObjectClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

class MockObjectClient:
    """
    In-memory object client.

    Keeps objects in a dict and answers listings in key order with the
    same delimiter grouping as the remote service. Missing keys fail the
    way the remote service does: 404 on read, 612 on delete.

    Not suitable for production.
    """

    def __init__(self, clock: Clock = time.time) -> None:
        # {key: (data, modified_at)}
        self._objects: dict[str, tuple[bytes, datetime]] = {}
        self._clock = clock
        self._lock = threading.Lock()
        logger.info("Initialized mock object client (in-memory)")

    def put_object(
        self,
        key: str,
        content: Content,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        stream = as_stream(content)
        size = content_length(stream)
        data = stream.read(size)
        modified_at = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
        with self._lock:
            self._objects[key] = (data, modified_at)

        logger.debug(
            "Stored object in mock storage",
            extra={"key": key, "size_bytes": size},
        )

    def get_object(
        self,
        key: str,
        *,
        timeout: Optional[float] = None,
    ) -> BinaryIO:
        with self._lock:
            entry = self._objects.get(key)
        if entry is None:
            raise HTTPStatusError(404)
        return io.BytesIO(entry[0])

    def list_objects(
        self,
        prefix: str = "",
        delimiter: str = "",
        *,
        timeout: Optional[float] = None,
    ) -> tuple[list[StorageObject], list[StorageCommonPrefix]]:
        with self._lock:
            snapshot = sorted(self._objects.items())

        objects: list[StorageObject] = []
        prefixes: list[StorageCommonPrefix] = []
        for key, (_, modified_at) in snapshot:
            if not key.startswith(prefix):
                continue
            if delimiter:
                cut = key.find(delimiter, len(prefix))
                if cut >= 0:
                    common = StorageCommonPrefix(key[:cut + len(delimiter)])
                    if not prefixes or prefixes[-1] != common:
                        prefixes.append(common)
                    continue
            objects.append(StorageObject(key=key, modified_at=modified_at))

        return objects, prefixes

    def delete_object(
        self,
        key: str,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        with self._lock:
            if self._objects.pop(key, None) is None:
                raise ServiceError(QINIU_NO_SUCH_ENTRY, "no such file or directory")

    def stop(self) -> None:
        pass


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_object_client(
    config: Optional[QiniuConfig] = None,
    mock_mode: bool = False,
) -> ObjectClient:
    """
    Create an object client.

    Args:
        config: Bucket configuration (required unless mock_mode)
        mock_mode: If True, return the in-memory client

    Returns:
        ObjectClient implementation (Qiniu or Mock)
    """
    if mock_mode:
        return MockObjectClient()

    if config is None:
        raise ConfigError("config is required when not in mock mode")

    return QiniuObjectClient(config)
