"""Storage backend factory."""

from __future__ import annotations

from typing import Iterator, Protocol

from ..auction.models import Auction
from ..config import ServerConfig
from .in_memory import InMemoryAuctionStorage


class AuctionStorage(Protocol):
    """Keyed auction records. Callers serialize access; backends need no locking."""

    def get(self, auction_id: str) -> Auction | None: ...

    def put(self, auction: Auction) -> None: ...

    def remove(self, auction_id: str) -> bool: ...

    def __contains__(self, auction_id: object) -> bool: ...

    def __iter__(self) -> Iterator[Auction]: ...

    def __len__(self) -> int: ...


def build_storage(config: ServerConfig) -> AuctionStorage:
    backend = config.storage.backend
    if backend == "in_memory":
        return InMemoryAuctionStorage()
    raise ValueError(f"unknown storage backend {backend}")
