"""Configuration helpers for the auction server."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml

_DEFAULT_SERVER_CONFIG = Path(__file__).resolve().parent / "server.yaml"


@dataclass(frozen=True)
class StorageConfig:
    backend: str
    options: Mapping[str, Any]


@dataclass(frozen=True)
class AuthConfig:
    mode: str
    keys: tuple[str, ...]
    login_key: str


@dataclass(frozen=True)
class CorsConfig:
    allow_origins: tuple[str, ...]
    allow_credentials: bool


@dataclass(frozen=True)
class ServerConfig:
    listen: Mapping[str, Any]
    storage: StorageConfig
    auth: AuthConfig
    cors: CorsConfig


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    return yaml.safe_load(path.read_text()) or {}


def load_server_config(path: Path) -> ServerConfig:
    data = _load_yaml(path)
    storage = data.get("storage", {})
    auth = data.get("auth", {})
    keys = tuple(str(key) for key in auth.get("keys") or ())
    cors = data.get("cors", {})
    return ServerConfig(
        listen=data.get("listen", {}),
        storage=StorageConfig(
            backend=str(storage.get("backend", "in_memory")),
            options=dict(storage.get("options") or {}),
        ),
        auth=AuthConfig(
            mode=str(auth.get("mode", "allow_all")),
            keys=keys,
            login_key=str(auth.get("login_key") or (keys[0] if keys else "secret-key")),
        ),
        cors=CorsConfig(
            allow_origins=tuple(cors.get("allow_origins") or ("http://localhost:8080",)),
            allow_credentials=bool(cors.get("allow_credentials", True)),
        ),
    )


@lru_cache(maxsize=1)
def get_server_config() -> ServerConfig:
    return load_server_config(Path(os.getenv("AUCTION_CONFIG_PATH", _DEFAULT_SERVER_CONFIG)))
