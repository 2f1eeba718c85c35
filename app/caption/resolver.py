"""
Purpose:
- Ask the Hugging Face inference API for a caption of an image URL.
- Try an ordered list of models; the first structurally valid, non-empty
  response wins and later models are never called.

Notes:
- Non-2xx status, transport errors and timeouts all mean "this model failed,
  try the next one". No retries of the same model.
- Only CaptionError subclasses escape resolve().
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import httpx
from pydantic import ValidationError

from ..core.settings import settings
from .schema import CAPTION_LIST

logger = logging.getLogger(__name__)

class CaptionError(Exception):
    """Base class for anything that stops a caption from being produced."""

class CaptionConfigError(CaptionError):
    pass

class AllModelsFailed(CaptionError):
    def __init__(self, tried: Sequence[str] = ()):
        super().__init__("All models failed to generate a valid caption.")
        self.tried = list(tried)

@dataclass(frozen=True)
class ModelEndpoint:
    model_id: str
    url: str

def build_endpoints(models: Sequence[str], base_url: str) -> List[ModelEndpoint]:
    base = base_url.rstrip("/")
    return [ModelEndpoint(model_id=m, url=f"{base}/{m}") for m in models]

def parse_caption(text: str) -> Optional[str]:
    """
    Return the first generated_text of a provider payload, or None when the
    payload is not a non-empty list of {"generated_text": str}.
    """
    try:
        items = CAPTION_LIST.validate_json(text)
    except ValidationError:
        return None
    if not items:
        return None
    return items[0].generated_text

class CaptionResolver:
    def __init__(
        self,
        token: Optional[str],
        endpoints: Sequence[ModelEndpoint],
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.token = token
        self.endpoints = list(endpoints)
        self.timeout = timeout
        self._client = client

    async def resolve(self, image_url: str) -> str:
        if not self.token:
            raise CaptionConfigError("HF_TOKEN is not configured")

        if self._client is not None:
            return await self._resolve_with(self._client, image_url)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._resolve_with(client, image_url)

    async def _resolve_with(self, client: httpx.AsyncClient, image_url: str) -> str:
        tried: List[str] = []
        for endpoint in self.endpoints:
            tried.append(endpoint.model_id)
            caption = await self._try_model(client, endpoint, image_url)
            if caption is not None:
                logger.info("Caption from %s", endpoint.model_id)
                return caption
        raise AllModelsFailed(tried)

    async def _try_model(self, client: httpx.AsyncClient, endpoint: ModelEndpoint, image_url: str) -> Optional[str]:
        logger.info("Trying model %s", endpoint.model_id)
        try:
            res = await client.post(
                endpoint.url,
                json={"inputs": image_url},
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.warning("Model %s request failed: %r", endpoint.model_id, e)
            return None

        if not res.is_success:
            logger.warning("Model %s returned HTTP %s", endpoint.model_id, res.status_code)
            return None

        text = res.text
        logger.debug("Raw response from %s: %s", endpoint.model_id, text)
        caption = parse_caption(text)
        if caption is None:
            logger.warning("Model %s gave no usable caption, trying next", endpoint.model_id)
        return caption

def get_resolver() -> CaptionResolver:
    """
    Resolver wired from process settings (FastAPI dependency).
    """
    return CaptionResolver(
        token=settings.hf_token,
        endpoints=build_endpoints(settings.caption_models, settings.hf_inference_base_url),
        timeout=settings.caption_timeout_s,
    )
