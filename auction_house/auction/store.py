"""Registry of auctions with lifecycle queries and key-guarded CRUD."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any

from ..storage import AuctionStorage
from ..transport.keys import KeyAuthorizer
from ..transport.timestamps import Clock, utc_now
from .errors import DuplicateId, NotFound, Unauthorized
from .lifecycle import AuctionState, is_completed, is_pending
from .models import Auction, Bid

logger = logging.getLogger(__name__)


class AuctionStore:
    """Thread-safe front for an auction storage backend.

    Every read and write of the backend happens under one re-entrant lock.
    Listings come back in the backend's iteration order (insertion order for
    the in-memory backend); callers must not depend on it.
    """

    def __init__(
        self,
        storage: AuctionStorage,
        authorizer: KeyAuthorizer,
        *,
        clock: Clock = utc_now,
    ) -> None:
        self._storage = storage
        self._authorizer = authorizer
        self._clock = clock
        self._lock = threading.RLock()

    def now(self) -> datetime:
        return self._clock()

    # Lifecycle queries -----------------------------------------------------

    def all_active(self, now: datetime | None = None) -> list[Auction]:
        now = now or self._clock()
        with self._lock:
            return [auction for auction in self._storage if auction.in_progress(now)]

    def all_pending(self, now: datetime | None = None) -> list[Auction]:
        now = now or self._clock()
        with self._lock:
            return [auction for auction in self._storage if is_pending(auction.start, now)]

    def all_completed(self, now: datetime | None = None) -> list[Auction]:
        now = now or self._clock()
        with self._lock:
            return [auction for auction in self._storage if is_completed(auction.end, now)]

    def stats(self, now: datetime | None = None) -> dict[str, Any]:
        now = now or self._clock()
        by_state = {state.value: 0 for state in AuctionState}
        total_bids = 0
        with self._lock:
            auctions = list(self._storage)
        for auction in auctions:
            by_state[auction.state(now).value] += 1
            total_bids += len(auction.snapshot_bids())
        return {
            "total_auctions": len(auctions),
            "total_bids": total_bids,
            "auctions_by_state": by_state,
        }

    # Guarded CRUD -----------------------------------------------------------

    def add(self, key: str, auction: Auction) -> None:
        self._authorize(key, "add")
        with self._lock:
            if auction.id in self._storage:
                logger.warning("rejected add: auction=%s already exists", auction.id)
                raise DuplicateId(auction.id)
            self._storage.put(auction)
        logger.info(
            "auction=%s added start=%s end=%s reserve=%s",
            auction.id,
            auction.start.isoformat(),
            auction.end.isoformat(),
            auction.reserve_price,
        )

    def delete(self, key: str, auction_id: str) -> None:
        self._authorize(key, "delete")
        with self._lock:
            removed = self._storage.remove(auction_id)
        if removed:
            logger.info("auction=%s deleted", auction_id)

    def update(self, key: str, auction_id: str, auction: Auction) -> Auction:
        self._authorize(key, "update")
        now = self._clock()
        with self._lock:
            current = self._require(auction_id)
            replacement = current.replace_terms(auction, now)
            self._storage.put(replacement)
        logger.info("auction=%s updated, %d bids carried over", auction_id, len(replacement.bids))
        return replacement

    def get(self, key: str, auction_id: str) -> Auction:
        self._authorize(key, "get")
        with self._lock:
            return self._require(auction_id)

    # Bidding ----------------------------------------------------------------

    def place_bid(self, auction_id: str, bid: Bid) -> Auction:
        now = self._clock()
        with self._lock:
            auction = self._require(auction_id)
            auction.add_bid(bid, now)
        return auction

    def result(self, key: str, auction_id: str) -> str:
        self._authorize(key, "result")
        with self._lock:
            auction = self._require(auction_id)
        return auction.result(self._clock())

    # Internals --------------------------------------------------------------

    def _authorize(self, key: str, operation: str) -> None:
        if not self._authorizer.is_authorized(key):
            logger.warning("rejected %s: invalid secret key", operation)
            raise Unauthorized()

    def _require(self, auction_id: str) -> Auction:
        auction = self._storage.get(auction_id)
        if auction is None:
            raise NotFound(auction_id)
        return auction
