"""Pluggable credential checks for store operations."""

from __future__ import annotations

import hmac
from typing import Iterable, Protocol

from ..config import AuthConfig


class KeyAuthorizer(Protocol):
    def is_authorized(self, key: str) -> bool: ...


class AllowAllAuthorizer:
    """Accepts every key. Placeholder until a real verification policy exists."""

    def is_authorized(self, key: str) -> bool:
        return True


class StaticKeyAuthorizer:
    def __init__(self, keys: Iterable[str]) -> None:
        self._keys = tuple(key for key in keys if key)
        if not self._keys:
            raise ValueError("static key authorizer requires at least one key")

    def is_authorized(self, key: str) -> bool:
        if not key:
            return False
        candidate = key.encode("utf-8")
        return any(hmac.compare_digest(candidate, known.encode("utf-8")) for known in self._keys)


def build_authorizer(config: AuthConfig) -> KeyAuthorizer:
    if config.mode == "allow_all":
        return AllowAllAuthorizer()
    if config.mode == "static":
        return StaticKeyAuthorizer(config.keys)
    raise ValueError(f"unknown auth mode {config.mode}")
