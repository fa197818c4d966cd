from __future__ import annotations
import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional, Tuple

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import JSONResponse

from app.dependencies import Container
from app.models.schemas import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["process"])


def get_container(request: Request) -> Container:
    container = getattr(request.app.state, "container", None)
    if container is None:
        container = Container()
        request.app.state.container = container
    return container


@asynccontextmanager
async def staged_upload(file: UploadFile, uploads_dir: Path) -> AsyncIterator[Tuple[bytes, Path]]:
    """Write the upload to the staging directory and remove it on exit, success or not."""
    staged_path = uploads_dir / uuid.uuid4().hex
    try:
        content = await file.read()
        uploads_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(staged_path.write_bytes, content)
        yield content, staged_path
    finally:
        staged_path.unlink(missing_ok=True)


@router.post(
    "/process",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def process_file(
    file: Optional[UploadFile] = File(default=None),
    container: Container = Depends(get_container),
) -> JSONResponse:
    if file is None:
        body = ErrorResponse(error="No file uploaded")
        return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))

    filename = file.filename or "upload"
    try:
        async with staged_upload(file, Path(container.settings.uploads_dir)) as (content, staged_path):
            result = await container.processor.process(content, filename, staged_path)
    except Exception as exc:
        logger.exception("Processing error for %s: %s", filename, exc)
        body = ErrorResponse(error="Failed to process document", details=str(exc) or type(exc).__name__)
        return JSONResponse(status_code=500, content=body.model_dump())

    return JSONResponse(content=result.to_response())


@router.get("/health", response_model=HealthResponse)
async def health(container: Container = Depends(get_container)) -> HealthResponse:
    tika = await container.tika.health()
    return HealthResponse(status="ok" if tika == "up" else "degraded", tika=tika)
