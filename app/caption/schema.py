"""
Purpose:
- Pydantic shapes for the caption provider payload and the standalone caption API.
- A provider response is only usable if it validates as a list of
  {"generated_text": str}; anything else (error envelopes, loading
  placeholders, plain text) fails validation.
"""

from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, Field, TypeAdapter

class CaptionCandidate(BaseModel):
    generated_text: str

CAPTION_LIST = TypeAdapter(List[CaptionCandidate])

class CaptionRequest(BaseModel):
    image_url: str = Field(..., min_length=1, description="Publicly reachable image URL")

class CaptionResponse(BaseModel):
    ok: bool = True
    image_url: str
    caption: Optional[str] = None
    error: Optional[str] = None
