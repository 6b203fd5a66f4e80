"""Shared auction data structures."""

from __future__ import annotations

import logging
import math
import threading
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Callable

from ..transport.timestamps import utc_now
from .errors import (
    AuctionClosed,
    AuctionInProgress,
    BidTooLow,
    ConstructionError,
    InvalidPrice,
    InvalidTimeRange,
    NoBids,
)
from .lifecycle import AuctionState, is_active, state_at
from .selection import select_winner

logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_auction_id() -> str:
    return str(uuid.uuid4())


def _as_price(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    price = float(value)
    return price if math.isfinite(price) else None


@dataclass(frozen=True)
class Bid:
    bidder_id: str
    price: float
    # Only used to break ties between equal prices.
    submitted_at: datetime = field(default_factory=utc_now)


@dataclass
class Auction:
    """A time-boxed auction with a reserve price.

    Bids are kept in arrival order. ``add_bid`` and ``result`` take the
    current time as an argument so callers (and tests) control the clock.
    """

    start: datetime
    end: datetime
    reserve_price: float
    id: str = field(default_factory=new_auction_id)
    bids: list[Bid] = field(default_factory=list)
    _lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ConstructionError("start and end must include timezone information")
        if not self.start < self.end:
            raise InvalidTimeRange(self.start, self.end)
        price = _as_price(self.reserve_price)
        if price is None or price < 0:
            raise InvalidPrice(self.reserve_price)
        self.reserve_price = price

    @classmethod
    def create(
        cls,
        start: datetime,
        end: datetime,
        reserve_price: float,
        *,
        id_factory: IdFactory = new_auction_id,
    ) -> Auction:
        return cls(start=start, end=end, reserve_price=reserve_price, id=id_factory())

    def in_progress(self, now: datetime | None = None) -> bool:
        return is_active(self.start, self.end, now or utc_now())

    def state(self, now: datetime | None = None) -> AuctionState:
        return state_at(self.start, self.end, now or utc_now())

    def add_bid(self, bid: Bid, now: datetime | None = None) -> None:
        now = now or utc_now()
        with self._lock:
            if not self.in_progress(now):
                raise AuctionClosed(self.id)
            price = _as_price(bid.price)
            if price is None or price < self.reserve_price:
                raise BidTooLow(bid.price, self.reserve_price)
            self.bids.append(bid)
        logger.debug("auction=%s bid accepted bidder=%s price=%s", self.id, bid.bidder_id, bid.price)

    def result(self, now: datetime | None = None) -> str:
        """Return the winning bidder id once the auction is no longer running."""
        with self._lock:
            if self.in_progress(now):
                raise AuctionInProgress(self.id)
            winner = select_winner(self.bids)
        if winner is None:
            raise NoBids(self.id)
        return winner.bidder_id

    def snapshot_bids(self) -> list[Bid]:
        with self._lock:
            return list(self.bids)

    def replace_terms(self, replacement: Auction, now: datetime | None = None) -> Auction:
        """Return ``replacement`` re-keyed to this id and holding this auction's bids.

        Terms are frozen once bidding opens, so this refuses while in progress.
        The replacement's own bids are discarded.
        """
        with self._lock:
            if self.in_progress(now):
                raise AuctionInProgress(self.id)
            return replace(replacement, id=self.id, bids=list(self.bids))
