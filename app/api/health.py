# Common language: Environment/ops probe that surfaces library versions and config presence.
# Secrets are reported as present/absent only.

from fastapi import APIRouter
from ..core.settings import settings
import sys, importlib

router = APIRouter(tags=["health"])

def _ver(modname: str) -> str:
    try:
        m = importlib.import_module(modname)
    except ImportError:
        return "not-installed"
    return getattr(m, "__version__", "unknown")

@router.get("/")
async def root():
    return {"message": "Upload captioner is running"}

@router.get("/healthz")
def healthz():
    return {
        "status": "ok",
        "python": sys.version.split()[0],
        "versions": {
            "fastapi": _ver("fastapi"),
            "uvicorn": _ver("uvicorn"),
            "pydantic_settings": _ver("pydantic_settings"),
            "httpx": _ver("httpx"),
            "boto3": _ver("boto3"),
            "python_multipart": _ver("python_multipart"),
        },
        "config": {
            "aws_region": settings.aws_region,
            "caption_models": list(settings.caption_models),
            "caption_timeout_s": settings.caption_timeout_s,
            "storage_timeout_s": settings.storage_timeout_s,
        },
        "env_keys_present": {
            "S3_BUCKET_NAME": bool(settings.s3_bucket_name),
            "HF_TOKEN": bool(settings.hf_token),
        },
    }
