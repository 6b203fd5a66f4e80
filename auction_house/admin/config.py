"""Expose currently loaded server config for debugging."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..config import ServerConfig

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_config(request: Request) -> ServerConfig:
    return request.app.state.server_config


@router.get("/config")
def config(request: Request, config: ServerConfig = Depends(_get_config)) -> dict:
    # Keys never leave the process; only their count is reported.
    return {
        "version": request.app.version,
        "listen": dict(config.listen),
        "storage_backend": config.storage.backend,
        "auth_mode": config.auth.mode,
        "configured_keys": len(config.auth.keys),
        "cors_allow_origins": list(config.cors.allow_origins),
    }
