"""In-memory storage backend for auction records."""

from __future__ import annotations

from typing import Iterator

from ..auction.models import Auction


class InMemoryAuctionStorage:
    def __init__(self) -> None:
        self._auctions: dict[str, Auction] = {}

    def get(self, auction_id: str) -> Auction | None:
        return self._auctions.get(auction_id)

    def put(self, auction: Auction) -> None:
        self._auctions[auction.id] = auction

    def remove(self, auction_id: str) -> bool:
        # Absent entries are dropped, never nulled, so scans only see live auctions.
        return self._auctions.pop(auction_id, None) is not None

    def __contains__(self, auction_id: object) -> bool:
        return auction_id in self._auctions

    def __iter__(self) -> Iterator[Auction]:
        # Insertion order of the underlying dict.
        return iter(list(self._auctions.values()))

    def __len__(self) -> int:
        return len(self._auctions)
