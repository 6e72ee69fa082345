import logging

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from artifact_review.api.api_v1.router import api_router
from artifact_review.api.serve import router as serve_router
from artifact_review.core.config import settings
from artifact_review.core.logging import configure_logging
from artifact_review.db.init_db import init_db

logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    version=settings.service_version,
    default_response_class=ORJSONResponse,
    openapi_url=f"{settings.api_v1_str}/openapi.json",
)
app.include_router(api_router, prefix=settings.api_v1_str)
app.include_router(serve_router, tags=["serve"])


@app.on_event("startup")
async def startup_event() -> None:
    configure_logging()
    await init_db()
    logger.info(
        "%s %s started (env=%s, object store=%s, mailer=%s)",
        settings.app_name,
        settings.service_version,
        settings.environment,
        settings.object_store_backend,
        settings.mailer_backend,
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": settings.service_version}


@app.get("/")
async def root() -> dict:
    return {
        "service": settings.app_name,
        "api": settings.api_v1_str,
        "share_url": "/artifact/{share_token}/v{version_number}/{file_path}",
    }


def run() -> None:
    import uvicorn

    uvicorn.run(
        "artifact_review.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "dev",
        log_level=settings.log_level.lower(),
    )
