"""
Blob store implementations.

Object keys follow `<category>/<owner_id>/<random hex><ext>`, e.g.
`payments/3f2a.../9b1c....png`. A random name per upload means a retried
registration never overwrites an earlier screenshot.

Uploads happen inside the registration transaction but cannot be rolled back
with it: a failed commit leaves an orphaned object behind. That is accepted;
the object is unreachable from any row and can be swept by a bucket
lifecycle rule.
"""

import asyncio
import time
import uuid
from pathlib import Path, PurePosixPath

from botocore.exceptions import BotoCoreError, ClientError

from gusto.core.errors import StorageError
from gusto.core.logging import get_logger
from gusto.core.metrics import blob_upload_latency
from gusto.services.interfaces.blob_store import BlobStore

logger = get_logger(__name__)


def build_object_key(category: str, owner_id: str, filename: str) -> str:
    extension = PurePosixPath(filename or "").suffix.lower() or ".png"
    return f"{category.strip('/')}/{owner_id}/{uuid.uuid4().hex}{extension}"


class S3BlobStore(BlobStore):
    """Stores objects in an S3 bucket; boto3 calls run in a worker thread."""

    def __init__(self, client, bucket: str, region: str):
        self.client = client
        self.bucket = bucket
        self.region = region

    def _build_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    async def store(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        category: str,
        owner_id: str,
    ) -> str:
        if self.client is None or not self.bucket or not self.region:
            raise StorageError("S3 not configured")

        key = build_object_key(category, owner_id, filename)
        start = time.perf_counter()
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("blob_upload_failed", backend="s3", key=key, error=str(exc))
            raise StorageError(f"S3 upload failed for {key}: {exc}") from exc
        finally:
            blob_upload_latency.observe(time.perf_counter() - start)

        logger.info("blob_uploaded", backend="s3", key=key, size=len(data))
        return self._build_url(key)


class LocalBlobStore(BlobStore):
    """Writes objects under a local directory; for development only."""

    def __init__(self, root: str, base_url: str):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _write(self, key: str, data: bytes) -> None:
        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def store(
        self,
        data: bytes,
        filename: str,
        content_type: str,
        category: str,
        owner_id: str,
    ) -> str:
        key = build_object_key(category, owner_id, filename)
        start = time.perf_counter()
        try:
            await asyncio.to_thread(self._write, key, data)
        except OSError as exc:
            logger.error("blob_upload_failed", backend="local", key=key, error=str(exc))
            raise StorageError(f"Local write failed for {key}: {exc}") from exc
        finally:
            blob_upload_latency.observe(time.perf_counter() - start)

        logger.info("blob_uploaded", backend="local", key=key, size=len(data))
        return f"{self.base_url}/{key}"
