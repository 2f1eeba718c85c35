"""
Purpose:
- The upload pipeline behind POST /upload:
  multipart stream -> first non-empty field -> <uuid4>.jpg in the object store
  -> public URL -> caption resolver -> one of six plain-text outcomes.

Policy:
- Exactly one file per request: the first field that carries any bytes is
  uploaded, later fields are never read.
- Captioning only runs after a successful put, and a caption failure never
  turns a stored upload into an error response.
"""

from __future__ import annotations
import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import AsyncIterable, Callable, Optional, Tuple

from ..caption.resolver import CaptionError, CaptionResolver, get_resolver
from ..core.settings import settings
from ..storage.s3 import ObjectStore, StorageError, get_object_store
from .multipart import MultipartReadError, MultipartReader, NotMultipartError

logger = logging.getLogger(__name__)

MSG_MISSING_BUCKET = "Server error: missing bucket name."
MSG_UPLOAD_FAILED = "Upload to S3 failed."
MSG_CHUNK_ERROR = "Error reading file chunk."
MSG_NO_FILE = "No file uploaded."

@dataclass(frozen=True)
class UploadOutcome:
    status_code: int
    message: str
    key: Optional[str] = None
    caption: Optional[str] = None

    @property
    def stored(self) -> bool:
        return self.key is not None

def new_object_key() -> str:
    # never derived from the client filename or the content
    return f"{uuid.uuid4()}.jpg"

def caption_ok(key: str, caption: str) -> UploadOutcome:
    return UploadOutcome(200, f"Uploaded + Caption: {key}\n{caption}", key=key, caption=caption)

def caption_failed(key: str) -> UploadOutcome:
    return UploadOutcome(200, f"Uploaded: {key}, but caption failed.", key=key)

class UploadOrchestrator:
    def __init__(
        self,
        bucket: Optional[str],
        store_factory: Callable[[str], ObjectStore],
        resolver: CaptionResolver,
        storage_timeout: float = 30.0,
        key_factory: Callable[[], str] = new_object_key,
    ):
        self.bucket = bucket
        self.store_factory = store_factory
        self.resolver = resolver
        self.storage_timeout = storage_timeout
        self.key_factory = key_factory

    async def handle(self, content_type: Optional[str], body: AsyncIterable[bytes]) -> UploadOutcome:
        if not self.bucket:
            logger.error("S3 bucket name is not configured")
            return UploadOutcome(500, MSG_MISSING_BUCKET)

        try:
            store = self.store_factory(self.bucket)
        except StorageError as e:
            logger.error("Object store unavailable: %s", e)
            return UploadOutcome(500, MSG_UPLOAD_FAILED)

        try:
            reader = MultipartReader.from_content_type(content_type, body)
        except NotMultipartError as e:
            logger.info("Rejected upload: %s", e)
            return UploadOutcome(400, MSG_NO_FILE)

        try:
            upload = await self._read_first_file(reader)
        except MultipartReadError as e:
            logger.warning("Error reading file chunk: %s", e)
            return UploadOutcome(400, MSG_CHUNK_ERROR)

        if upload is None:
            return UploadOutcome(400, MSG_NO_FILE)
        key, data = upload

        logger.info("Uploading %s (%d bytes)", key, len(data))
        try:
            await asyncio.wait_for(store.put(key, data), timeout=self.storage_timeout)
        except asyncio.TimeoutError:
            logger.error("Upload of %s timed out after %.1fs", key, self.storage_timeout)
            return UploadOutcome(500, MSG_UPLOAD_FAILED)
        except StorageError:
            return UploadOutcome(500, MSG_UPLOAD_FAILED)

        image_url = store.public_url(key)
        logger.info("Uploaded image URL: %s", image_url)

        try:
            caption = await self.resolver.resolve(image_url)
        except CaptionError as e:
            logger.warning("Failed to generate caption for %s: %s", key, e)
            return caption_failed(key)

        return caption_ok(key, caption)

    async def _read_first_file(self, reader: MultipartReader) -> Optional[Tuple[str, bytes]]:
        """
        Accumulate the first field that yields any bytes. Returns None when the
        body has no such field.
        """
        async for field in reader.fields():
            buf = bytearray()
            async for chunk in field.chunks():
                buf.extend(chunk)
            if buf:
                key = self.key_factory()
                logger.info("Field %r (filename=%r) -> %s", field.name, field.filename, key)
                return key, bytes(buf)
            logger.debug("Skipping empty field %r", field.name)
        return None

def get_orchestrator() -> UploadOrchestrator:
    """
    Orchestrator wired from process settings (FastAPI dependency).
    """
    return UploadOrchestrator(
        bucket=settings.s3_bucket_name,
        store_factory=get_object_store,
        resolver=get_resolver(),
        storage_timeout=settings.storage_timeout_s,
    )
