"""
Purpose:
- Centralized configuration using pydantic-settings.
- Reads from environment variables and optional .env file.
- Bucket name and HF token are optional here on purpose: their absence is
  reported per request (500 / caption failure), not at import time.
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CAPTION_MODELS = [
    "Salesforce/blip-image-captioning-large",
    "Salesforce/blip-image-captioning-base",
    "nlpconnect/vit-gpt2-image-captioning",
]

class Settings(BaseSettings):
    # Pydantic v2 config (env file + ignore unexpected env vars)
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API host/port
    host: str = Field(default="127.0.0.1", description="Bind address for Uvicorn")
    port: int = Field(default=8080, description="Port for Uvicorn")
    log_level: str = Field(default="INFO")

    # CORS
    cors_allow_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed origins for browser apps"
    )

    # ---- Object store (S3) ----
    # S3_BUCKET_NAME / AWS_REGION; credentials come from the usual boto3 chain.
    s3_bucket_name: Optional[str] = None
    aws_region: str = Field(default="ap-south-1", description="Region used for the client and public URLs")
    storage_timeout_s: float = Field(default=30.0)

    # ---- Hugging Face inference ----
    hf_token: Optional[str] = None
    hf_inference_base_url: str = Field(default="https://api-inference.huggingface.co/models")
    # order is priority: first structurally valid response wins
    caption_models: List[str] = Field(default_factory=lambda: list(DEFAULT_CAPTION_MODELS))
    caption_timeout_s: float = Field(default=30.0)

settings = Settings()
