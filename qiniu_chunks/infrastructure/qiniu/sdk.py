"""
Default collaborators backed by the Qiniu SDK and requests.

Credentials, signatures, region hosts and form uploads come from the
``qiniu`` package. Object reads and management calls go through a
``requests.Session`` owned by whoever constructed these objects.
Transport failures become ``TransportError`` and vendor rejections become
``ServiceError`` with the vendor's message intact.
"""

import logging
import threading
from typing import Any, BinaryIO, Callable, Optional

import requests
from qiniu import Auth, QiniuMacAuth
from qiniu.auth import QiniuMacRequestsAuth
from qiniu.http.region import Region, ServiceName
from qiniu.http.response import ResponseInfo
from qiniu.services.storage.uploaders import FormUploader
from requests.auth import AuthBase

from ...core.storage.errors import ConfigError, ServiceError, TransportError
from .regions import service_url

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def endpoint(use_https: bool, host: str) -> str:
    """Prefix a bare host with the scheme selected by ``use_https``."""
    scheme = "https" if use_https else "http"
    return f"{scheme}://{host}"


def _error_message(payload: Any, fallback: Optional[str]) -> str:
    message = payload.get("error", "") if isinstance(payload, dict) else ""
    return message or fallback or ""


def raise_for_service_error(response: requests.Response) -> None:
    """Raise ``ServiceError`` for any non-2xx vendor response."""
    if 200 <= response.status_code < 300:
        return

    try:
        payload = response.json()
    except ValueError:
        payload = None

    raise ServiceError(
        response.status_code,
        _error_message(payload, response.text),
        request_id=response.headers.get("X-Reqid"),
    )


def raise_for_upload_error(info: ResponseInfo, key: str) -> None:
    """
    Translate the SDK's upload ``ResponseInfo`` into our errors.

    The SDK reports a request that never got a response with a negative
    status code and the exception it caught.
    """
    if info.ok():
        return

    if info.status_code < 0:
        raise TransportError(f"upload of {key} failed: {info.exception}") from info.exception

    raise ServiceError(
        info.status_code,
        _error_message(info.json(), info.text_body),
        request_id=info.req_id,
    )


class QiniuSigner:
    """
    Signer built on the Qiniu SDK credentials.

    Holds two views of the same key pair: ``qiniu.Auth`` for upload
    tokens and download URLs, and ``QiniuMacAuth`` for the "Qiniu"
    request signature used by management calls.

    The SDK objects are created on first use, so a client reading a
    public bucket works without keys. Empty keys surface as
    ``ConfigError`` from the first call that needs to sign.
    """

    def __init__(self, access_key: str, secret_key: str) -> None:
        self._access_key = access_key
        self._secret_key = secret_key
        self._lock = threading.Lock()
        self._auth: Optional[Auth] = None
        self._request_auth: Optional[QiniuMacRequestsAuth] = None

    def _credentials(self) -> tuple[Auth, QiniuMacRequestsAuth]:
        with self._lock:
            if self._auth is None:
                try:
                    auth = Auth(self._access_key, self._secret_key)
                    mac = QiniuMacAuth(self._access_key, self._secret_key)
                except ValueError as e:
                    raise ConfigError(f"Invalid Qiniu credentials: {e}") from e
                self._auth = auth
                self._request_auth = QiniuMacRequestsAuth(mac)
            return self._auth, self._request_auth

    def upload_token(self, bucket: str, expires: int) -> str:
        auth, _ = self._credentials()
        return auth.upload_token(bucket, expires=expires)

    def sign_url(self, url: str, deadline: int) -> str:
        # Auth.private_download_url reads time.time() itself; the deadline
        # here comes from the client's clock.
        auth, _ = self._credentials()
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}e={deadline}"
        return f"{url}&token={auth.token(url)}"

    def request_auth(self) -> AuthBase:
        """requests auth hook adding the "Qiniu" management signature."""
        _, request_auth = self._credentials()
        return request_auth


class RequestsTransport:
    """Object reads over a requests session."""

    def __init__(self, session: requests.Session) -> None:
        self._session = session

    def get(
        self,
        url: str,
        headers: dict[str, str],
        timeout: Optional[float] = None,
    ) -> requests.Response:
        try:
            response = self._session.get(
                url,
                headers=headers,
                timeout=timeout,
                stream=True,
            )
        except requests.RequestException as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        # Readers of ``raw`` get the decoded payload, as with ``content``
        response.raw.decode_content = True
        return response


class RegionDirectory:
    """
    Bucket directory for buckets in one SDK region.

    The rs and rsf hosts are the region's first management endpoints.
    ``auth`` returns the requests auth hook signing each call; it is
    looked up per call so credentials are only needed once a call is made.
    """

    def __init__(
        self,
        region: Region,
        use_https: bool,
        auth: Callable[[], AuthBase],
        session: requests.Session,
    ) -> None:
        self._rs_host = service_url(region, ServiceName.RS, use_https)
        self._rsf_host = service_url(region, ServiceName.RSF, use_https)
        self._auth = auth
        self._session = session

    def rs_host(self, bucket: str) -> str:
        return self._rs_host

    def rsf_host(self, bucket: str) -> str:
        return self._rsf_host

    def credentialed_call(
        self,
        method: str,
        url: str,
        timeout: Optional[float] = None,
    ) -> Optional[dict[str, Any]]:
        auth = self._auth()
        try:
            response = self._session.request(
                method,
                url,
                auth=auth,
                headers={"Content-Type": FORM_CONTENT_TYPE},
                timeout=timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        try:
            raise_for_service_error(response)
            if not response.content:
                return None
            try:
                return response.json()
            except ValueError as e:
                raise ServiceError(
                    response.status_code,
                    f"malformed response body: {e}",
                    request_id=response.headers.get("X-Reqid"),
                ) from e
        finally:
            response.close()


class SdkFormUploader:
    """
    Form upload through the SDK's ``FormUploader``.

    The SDK takes the upload endpoints from the region, in the order
    ``resolve_region`` left them, and moves on to the next endpoint when
    one is unreachable. It sends through its own HTTP client, so the
    per-call ``timeout`` does not apply; the SDK's ``connection_timeout``
    default does.
    """

    def __init__(self, bucket: str, region: Region, use_https: bool) -> None:
        self._uploader = FormUploader(
            bucket,
            regions=[region],
            preferred_scheme="https" if use_https else "http",
            accelerate_uploading=False,
        )

    def put(
        self,
        token: str,
        key: str,
        stream: BinaryIO,
        size: int,
        timeout: Optional[float] = None,
    ) -> dict[str, Any]:
        ret, info = self._uploader.upload(
            key,
            data=stream,
            data_size=size,
            mime_type="application/octet-stream",
            file_name=key,
            up_token=token,
        )
        raise_for_upload_error(info, key)

        logger.debug(
            "Uploaded object",
            extra={"key": key, "size_bytes": size, "request_id": info.req_id},
        )
        return ret or {}
