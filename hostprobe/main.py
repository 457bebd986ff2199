from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
import uvicorn

from hostprobe.api.routes import router
from hostprobe.cache import SnapshotCache
from hostprobe.collectors import (
    DiskCollector,
    GpuCollector,
    GpuProcessCollector,
    ModelCollector,
    PortCollector,
    ProcessEnricher,
)
from hostprobe.config import Settings, settings
from hostprobe.errors import CollectionError
from hostprobe.runner import CommandRunner

logger = logging.getLogger(__name__)


def init_state(app: FastAPI, config: Settings) -> None:
    """Build collectors and the port snapshot cache onto ``app.state``."""
    runner = CommandRunner(timeout=config.command_timeout)

    app.state.runner = runner
    app.state.port_collector = PortCollector(runner, ProcessEnricher(runner))
    app.state.ports_cache = SnapshotCache(window=config.ports_cache_seconds)
    app.state.gpu_collector = GpuCollector(runner)
    app.state.gpu_process_collector = GpuProcessCollector(runner)
    app.state.model_collector = ModelCollector(
        runner,
        config.model_dir,
        min_size_bytes=config.min_model_size_bytes,
    )
    app.state.disk_collector = DiskCollector(runner, config.model_dir, config.disk_device)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_state(app, settings)
    logger.info(
        "%s started, model dir %s, port cache %.1fs",
        settings.app_name, settings.model_dir, settings.ports_cache_seconds,
    )
    yield
    logger.info("%s shut down", settings.app_name)


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.exception_handler(CollectionError)
async def collection_error_handler(request: Request, exc: CollectionError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=500, content=exc.to_dict())


app.include_router(router)

# Serve a built frontend when present; API routes are registered first.
_FRONTEND_DIST = Path(settings.frontend_dist)
if _FRONTEND_DIST.is_dir():
    if (_FRONTEND_DIST / "assets").is_dir():
        app.mount("/assets", StaticFiles(directory=str(_FRONTEND_DIST / "assets")), name="static-assets")

    @app.get("/{full_path:path}")
    async def serve_spa(full_path: str):
        file_path = (_FRONTEND_DIST / full_path).resolve()
        if full_path and file_path.is_file() and _FRONTEND_DIST.resolve() in file_path.parents:
            return FileResponse(str(file_path))
        return FileResponse(str(_FRONTEND_DIST / "index.html"))


def run() -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
