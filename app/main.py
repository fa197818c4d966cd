from __future__ import annotations
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Dict

from fastapi import FastAPI, Request

from app.api.routes.process import router as process_router
from app.core.config import settings
from app.core.logging import setup_logging
from app.dependencies import Container

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.container = Container(settings)
    logger.info(
        "Document processing service configured: tika_url=%s completed_dir=%s uploads_dir=%s",
        settings.tika_url,
        settings.completed_dir,
        settings.uploads_dir,
    )
    try:
        yield
    finally:
        await app.state.container.close()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(process_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    stamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    logger.info("%s - %s %s", stamp, request.method, request.url.path)
    return await call_next(request)


@app.get("/")
async def root() -> Dict[str, str]:
    return {"service": settings.app_name, "status": "running"}


def run() -> None:
    import uvicorn

    logger.info("Document processing service running on http://%s:%s", settings.app_host, settings.app_port)
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_config=None)


if __name__ == "__main__":
    run()
