"""
Purpose:
- POST /upload: stream a multipart body into the upload pipeline and return its
  plain-text outcome. All status mapping lives in the orchestrator.
"""

import logging
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from ..upload.orchestrator import UploadOrchestrator, get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])

@router.post("/upload", response_class=PlainTextResponse)
async def upload_image(request: Request, orchestrator: UploadOrchestrator = Depends(get_orchestrator)):
    logger.info("Received upload request")
    outcome = await orchestrator.handle(request.headers.get("content-type"), request.stream())
    return PlainTextResponse(outcome.message, status_code=outcome.status_code)
