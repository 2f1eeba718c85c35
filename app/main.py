"""
Purpose:
- FastAPI application factory and router mounts.
- Adds CORS for local dev.
- `python -m app.main` serves it with Uvicorn on settings.host:settings.port.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .core.logger import setup_logging
from .core.settings import settings
from .api.health import router as health_router
from .api.upload import router as upload_router
from .api.caption import router as caption_router

def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Upload Captioner API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(health_router)
    app.include_router(upload_router)
    app.include_router(caption_router)
    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
