from __future__ import annotations

import logging

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

router = APIRouter()


# ── storage ───────────────────────────────────────────


@router.get("/api/models")
async def get_models(request: Request) -> list[dict]:
    models = await request.app.state.model_collector.collect()
    return [m.to_json_dict() for m in models]


@router.get("/api/stats")
async def get_stats(request: Request) -> dict:
    stats = await request.app.state.disk_collector.collect()
    return stats[0].to_json_dict()


# ── telemetry ─────────────────────────────────────────


@router.get("/api/ports")
async def get_ports(request: Request) -> list[dict]:
    state = request.app.state
    ports = await state.ports_cache.get_or_collect(state.port_collector.collect)
    return [p.to_json_dict() for p in ports]


@router.get("/api/gpu")
async def get_gpus(request: Request) -> list[dict]:
    gpus = await request.app.state.gpu_collector.collect()
    return [g.to_json_dict() for g in gpus]


@router.get("/api/gpu/processes")
async def get_gpu_processes(request: Request) -> list[dict]:
    processes = await request.app.state.gpu_process_collector.collect()
    return [p.to_json_dict() for p in processes]


@router.get("/api/health")
async def get_health(request: Request) -> dict:
    cache = request.app.state.ports_cache
    return {
        "status": "running",
        "portsCacheSeconds": cache.window,
        "portsCacheAge": cache.age,
    }
