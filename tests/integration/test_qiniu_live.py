"""
Live round trip against a real Qiniu bucket.

Skipped unless QINIU_URL, QINIU_ACCESS_KEY, QINIU_SECRET_KEY and
QINIU_BUCKET are set. QINIU_FLAG and QINIU_REGION are honoured.
"""

import os
import uuid

import pytest

from qiniu_chunks.config import Settings
from qiniu_chunks.infrastructure.qiniu import QiniuObjectClient

REQUIRED = ("QINIU_URL", "QINIU_ACCESS_KEY", "QINIU_SECRET_KEY", "QINIU_BUCKET")

pytestmark = pytest.mark.skipif(
    not all(os.environ.get(name) for name in REQUIRED),
    reason="Qiniu credentials not configured",
)


def test_put_get_list_delete():
    client = QiniuObjectClient(Settings().to_qiniu_config())
    key = f"fake/{uuid.uuid4().hex}"
    payload = b"c" * 41

    try:
        client.list_objects("fake", "/")
        client.put_object(key, payload)

        body = client.get_object(key)
        try:
            assert body.read() == payload
        finally:
            body.close()

        objects, _ = client.list_objects("fake/", "")
        assert key in [o.key for o in objects]

        client.delete_object(key)
    finally:
        client.stop()
