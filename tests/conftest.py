"""
Shared fixtures: an in-memory stand-in for the Qiniu service.

The fakes implement the collaborator protocols the client depends on
(signer, transport, bucket directory, form uploader) and keep objects in
a dict, so the real client logic runs end to end without a network.
"""

import base64
import io
from typing import Any, Optional
from urllib.parse import parse_qs, unquote, urlsplit

import pytest
import requests

from qiniu_chunks.core.storage import HTTPStatusError, ServiceError
from qiniu_chunks.infrastructure.qiniu import QiniuConfig, QiniuObjectClient


class FakeClock:
    """Manually advanced unix clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSigner:
    def __init__(self) -> None:
        self.issued: list[tuple[str, int]] = []

    def upload_token(self, bucket: str, expires: int) -> str:
        self.issued.append((bucket, expires))
        return f"token-{len(self.issued)}"

    def sign_url(self, url: str, deadline: int) -> str:
        return f"{url}?e={deadline}&token=sig-{deadline}"


class FakeResponse:
    def __init__(self, status_code: int, body: bytes = b"") -> None:
        self.status_code = status_code
        self.raw = io.BytesIO(body)
        self.closed = False

    def close(self) -> None:
        self.closed = True
        self.raw.close()


class FakeQiniuService:
    """
    Dict-backed bucket plus fake collaborators sharing it.

    ``page_size`` controls how many keys a listing page returns.
    """

    def __init__(self, bucket: str = "b", base_url: str = "http://cdn.example.com") -> None:
        self.bucket = bucket
        self.base_url = base_url
        self.objects: dict[str, bytes] = {}
        self.page_size = 1000
        self.clock = FakeClock()
        self.signer = FakeSigner()

        self.gets: list[dict[str, Any]] = []
        self.calls: list[dict[str, Any]] = []
        self.uploads: list[dict[str, Any]] = []
        self.responses: list[FakeResponse] = []

    # -- Transport ---------------------------------------------------------

    def get(self, url: str, headers: dict[str, str], timeout: Optional[float] = None) -> FakeResponse:
        self.gets.append({"url": url, "headers": headers, "timeout": timeout})
        path = urlsplit(url).path
        key = unquote(path[1:])
        data = self.objects.get(key)
        response = FakeResponse(200, data) if data is not None else FakeResponse(404, b"not found")
        self.responses.append(response)
        return response

    # -- BucketDirectory ---------------------------------------------------

    def rs_host(self, bucket: str) -> str:
        return "https://rs.fake"

    def rsf_host(self, bucket: str) -> str:
        return "https://rsf.fake"

    def credentialed_call(self, method: str, url: str, timeout: Optional[float] = None):
        self.calls.append({"method": method, "url": url, "timeout": timeout})
        parts = urlsplit(url)

        if parts.path.startswith("/delete/"):
            entry = base64.urlsafe_b64decode(parts.path[len("/delete/"):]).decode()
            _, key = entry.split(":", 1)
            if self.objects.pop(key, None) is None:
                raise ServiceError(612, "no such file or directory")
            return None

        query = parse_qs(parts.query, keep_blank_values=True)
        prefix = query.get("prefix", [""])[0]
        marker = query.get("marker", [""])[0]
        keys = sorted(k for k in self.objects if k.startswith(prefix))
        start = int(marker) if marker else 0
        page = keys[start:start + self.page_size]
        next_start = start + len(page)
        return {
            "items": [{"key": k, "putTime": 17_000_000_000_000_000} for k in page],
            "commonPrefixes": [],
            "marker": str(next_start) if next_start < len(keys) else "",
        }

    # -- FormUploader ------------------------------------------------------

    def put(self, token: str, key: str, stream, size: int, timeout: Optional[float] = None):
        data = stream.read(size)
        self.uploads.append({"token": token, "key": key, "size": size, "data": data, "timeout": timeout})
        self.objects[key] = data
        return {"key": key}

    # -- Client construction -----------------------------------------------

    def make_client(self, flag: str = "", **overrides) -> QiniuObjectClient:
        config = QiniuConfig(
            url=overrides.pop("url", self.base_url),
            access_key="ak",
            secret_key="sk",
            bucket=self.bucket,
            region=overrides.pop("region", ""),
            flag=flag,
            timeout_seconds=overrides.pop("timeout_seconds", 30.0),
        )
        return QiniuObjectClient(
            config,
            signer=overrides.pop("signer", self.signer),
            transport=overrides.pop("transport", self),
            directory=overrides.pop("directory", self),
            uploader=overrides.pop("uploader", self),
            clock=overrides.pop("clock", self.clock),
        )


class ScriptedDirectory:
    """
    Bucket directory that replays a fixed list of listing responses.

    An entry that is an exception is raised instead of returned.
    """

    def __init__(self, pages: list) -> None:
        self.pages = list(pages)
        self.urls: list[str] = []
        self.host_lookups = 0

    def rs_host(self, bucket: str) -> str:
        return "https://rs.fake"

    def rsf_host(self, bucket: str) -> str:
        self.host_lookups += 1
        return "https://rsf.fake"

    def credentialed_call(self, method: str, url: str, timeout: Optional[float] = None):
        self.urls.append(url)
        page = self.pages[len(self.urls) - 1]
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def service() -> FakeQiniuService:
    return FakeQiniuService()


@pytest.fixture
def clock(service: FakeQiniuService) -> FakeClock:
    return service.clock


@pytest.fixture
def scripted_directory():
    return ScriptedDirectory


@pytest.fixture
def not_found():
    """Predicate for the not-found class of storage errors."""
    def check(error: Exception) -> bool:
        return isinstance(error, (HTTPStatusError, ServiceError)) and error.is_not_found
    return check


class RecordingSession:
    """requests.Session stand-in that only tracks closing."""

    def __init__(self) -> None:
        self.closed = False
        self.close_calls = 0

    def close(self) -> None:
        self.closed = True
        self.close_calls += 1


@pytest.fixture
def recorded_sessions(monkeypatch) -> list[RecordingSession]:
    """Sessions the client creates while the fixture is active."""
    sessions: list[RecordingSession] = []

    def make_session() -> RecordingSession:
        session = RecordingSession()
        sessions.append(session)
        return session

    monkeypatch.setattr(requests, "Session", make_session)
    return sessions
