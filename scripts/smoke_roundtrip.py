#!/usr/bin/env python3
"""
Round-trip a chunk through a real Qiniu bucket.

Lists the bucket, uploads a small chunk, reads it back, compares the
bytes and deletes it again.

Usage:
    python scripts/smoke_roundtrip.py [--prefix fake] [--key fake/chunk]

Requires:
    - .env file (or environment) with QINIU_URL, QINIU_ACCESS_KEY,
      QINIU_SECRET_KEY and QINIU_BUCKET; QINIU_FLAG and QINIU_REGION optional
"""

import sys
import uuid
from pathlib import Path

# Add the project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from qiniu_chunks.config import configure_logging, get_settings
from qiniu_chunks.core.storage import StorageError
from qiniu_chunks.infrastructure.qiniu import create_object_client


def run_roundtrip(prefix: str, key: str) -> bool:
    settings = get_settings()
    configure_logging(settings.log_level)

    missing = settings.validate_required_fields()
    if missing:
        print(f"ERROR: missing configuration: {', '.join(missing)}")
        return False

    payload = b"c" * 41
    client = create_object_client(settings.to_qiniu_config(), mock_mode=settings.mock_mode)

    try:
        objects, prefixes = client.list_objects(prefix, "/")
        print(f"[OK] Listed {len(objects)} objects and {len(prefixes)} prefixes under {prefix!r}")

        client.put_object(key, payload)
        print(f"[OK] Uploaded {key}")

        body = client.get_object(key)
        try:
            data = body.read()
        finally:
            body.close()

        if data != payload:
            print(f"[ERR] Read back {len(data)} bytes that differ from what was written")
            return False
        print(f"[OK] Read back {len(data)} bytes")

        client.delete_object(key)
        print(f"[OK] Deleted {key}")
    except StorageError as e:
        print(f"[ERR] {type(e).__name__}: {e}")
        return False
    finally:
        client.stop()

    return True


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Round-trip a chunk through a Qiniu bucket')
    parser.add_argument('--prefix', default='fake', help='Prefix to list before writing')
    parser.add_argument('--key', default=None, help='Key to write (default: random under the prefix)')
    args = parser.parse_args()

    key = args.key or f"{args.prefix}/{uuid.uuid4().hex}"

    success = run_roundtrip(args.prefix, key)
    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
