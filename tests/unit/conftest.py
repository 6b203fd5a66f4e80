"""Shared fixtures: a controllable clock and a store wired to it."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from auction_house.auction.models import Auction
from auction_house.auction.store import AuctionStore
from auction_house.storage.in_memory import InMemoryAuctionStorage
from auction_house.transport.keys import AllowAllAuthorizer, StaticKeyAuthorizer

START = datetime(2019, 11, 18, tzinfo=timezone.utc)
END = datetime(2019, 11, 19, tzinfo=timezone.utc)
BEFORE = START - timedelta(hours=1)
DURING = START + timedelta(hours=12)
AFTER = END + timedelta(hours=1)

KEY = "secret-key"


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(BEFORE)


@pytest.fixture
def auction() -> Auction:
    return Auction.create(START, END, 20.45)


@pytest.fixture
def store(clock: FakeClock) -> AuctionStore:
    return AuctionStore(InMemoryAuctionStorage(), AllowAllAuthorizer(), clock=clock)


@pytest.fixture
def guarded_store(clock: FakeClock) -> AuctionStore:
    """Store that only accepts KEY."""
    return AuctionStore(InMemoryAuctionStorage(), StaticKeyAuthorizer([KEY]), clock=clock)
