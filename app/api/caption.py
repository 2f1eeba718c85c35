"""
Purpose:
- /api/v1/caption runs the model-fallback resolver on an already public image URL.
- Same envelope as the upload flow's caption step: failures come back as ok=False, never 5xx.
"""

from fastapi import APIRouter, Depends
from ..caption.resolver import CaptionError, CaptionResolver, get_resolver
from ..caption.schema import CaptionRequest, CaptionResponse

router = APIRouter(prefix="/api/v1", tags=["caption"])

@router.post("/caption", response_model=CaptionResponse)
async def caption(payload: CaptionRequest, resolver: CaptionResolver = Depends(get_resolver)):
    try:
        text = await resolver.resolve(payload.image_url)
        return CaptionResponse(ok=True, image_url=payload.image_url, caption=text)
    except CaptionError as e:
        return CaptionResponse(ok=False, image_url=payload.image_url, error=f"caption-failed: {e}")
