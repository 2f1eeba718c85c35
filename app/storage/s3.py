"""
Purpose:
- Object store used by the upload pipeline: put bytes under a key, derive the public URL.
- S3 implementation on boto3. The client is thread-safe, so one instance is shared
  by all in-flight uploads; the blocking put runs in the threadpool.

Notes:
- Automatic retries are turned off (max_attempts=1); a failed or timed-out put
  is reported once as StorageError.
"""

from __future__ import annotations
import logging
from typing import Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from starlette.concurrency import run_in_threadpool

from ..core.settings import settings

logger = logging.getLogger(__name__)

PUBLIC_URL_TEMPLATE = "https://{bucket}.s3.{region}.amazonaws.com/{key}"

class StorageError(Exception):
    pass

class ObjectStore(Protocol):
    async def put(self, key: str, data: bytes) -> None:
        ...

    def public_url(self, key: str) -> str:
        ...

def public_url(bucket: str, region: str, key: str) -> str:
    return PUBLIC_URL_TEMPLATE.format(bucket=bucket, region=region, key=key)

class S3ObjectStore:
    def __init__(self, bucket: str, region: str, timeout: float = 30.0, client=None):
        self.bucket = bucket
        self.region = region
        if client is None:
            cfg = Config(
                region_name=region,
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"max_attempts": 1},
            )
            client = boto3.client("s3", config=cfg)
        self._client = client

    async def put(self, key: str, data: bytes) -> None:
        try:
            await run_in_threadpool(
                self._client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType="image/jpeg",
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to upload %s/%s: %s", self.bucket, key, e)
            raise StorageError(str(e)) from e
        logger.info("Uploaded %d bytes to %s/%s", len(data), self.bucket, key)

    def public_url(self, key: str) -> str:
        return public_url(self.bucket, self.region, key)

_STORE: Optional[S3ObjectStore] = None  # cached instance

def get_object_store(bucket: str) -> S3ObjectStore:
    """
    Return the process-wide S3 store for `bucket`, creating it on first use.
    Client construction errors surface as StorageError.
    """
    global _STORE
    if _STORE is not None and _STORE.bucket == bucket:
        return _STORE
    try:
        _STORE = S3ObjectStore(bucket, settings.aws_region, timeout=settings.storage_timeout_s)
    except (BotoCoreError, ClientError) as e:
        raise StorageError(f"could not initialize S3 client: {e}") from e
    logger.info("S3 client initialized for bucket %s", bucket)
    return _STORE
