"""Unit tests for the auction registry."""

from __future__ import annotations

import threading
from datetime import timedelta

import pytest

from auction_house.auction.errors import (
    AuctionClosed,
    AuctionInProgress,
    DuplicateId,
    NotFound,
    Unauthorized,
)
from auction_house.auction.models import Auction, Bid

from conftest import AFTER, BEFORE, DURING, END, KEY, START

T0 = START + timedelta(minutes=1)


def _auction(start=START, end=END, reserve=20.45, auction_id=None) -> Auction:
    if auction_id is None:
        return Auction.create(start, end, reserve)
    return Auction(start=start, end=end, reserve_price=reserve, id=auction_id)


class TestLifecycleQueries:
    @pytest.fixture
    def populated(self, store):
        pending = _auction(START + timedelta(days=10), END + timedelta(days=10), auction_id="pending")
        active = _auction(auction_id="active")
        completed = _auction(START - timedelta(days=10), END - timedelta(days=10), auction_id="completed")
        for auction in (pending, active, completed):
            store.add(KEY, auction)
        return store

    def test_partition_by_state(self, populated):
        assert [a.id for a in populated.all_active(DURING)] == ["active"]
        assert [a.id for a in populated.all_pending(DURING)] == ["pending"]
        assert [a.id for a in populated.all_completed(DURING)] == ["completed"]

    def test_queries_use_store_clock(self, populated, clock):
        clock.set(DURING)
        assert [a.id for a in populated.all_active()] == ["active"]

    def test_exact_start_is_neither_pending_nor_active(self, store):
        store.add(KEY, _auction(auction_id="edge"))
        assert store.all_active(START) == []
        assert store.all_pending(START) == []
        assert store.all_completed(START) == []

    def test_exact_end_is_completed(self, store):
        store.add(KEY, _auction(auction_id="edge"))
        assert [a.id for a in store.all_completed(END)] == ["edge"]
        assert store.all_active(END) == []

    def test_empty_store(self, store):
        assert store.all_active(DURING) == []

    def test_stats(self, populated):
        populated.get(KEY, "active").add_bid(Bid("A", 21, T0), DURING)
        stats = populated.stats(DURING)
        assert stats["total_auctions"] == 3
        assert stats["total_bids"] == 1
        assert stats["auctions_by_state"] == {"pending": 1, "active": 1, "completed": 1}


class TestAdd:
    def test_add_then_get(self, store):
        auction = _auction()
        store.add(KEY, auction)
        fetched = store.get(KEY, auction.id)
        assert fetched == auction

    def test_duplicate_id(self, store):
        store.add(KEY, _auction(auction_id="dup"))
        with pytest.raises(DuplicateId):
            store.add(KEY, _auction(reserve=99, auction_id="dup"))
        assert store.get(KEY, "dup").reserve_price == 20.45

    def test_unauthorized_add_leaves_store_unchanged(self, guarded_store):
        with pytest.raises(Unauthorized):
            guarded_store.add("wrong", _auction(auction_id="x"))
        with pytest.raises(NotFound):
            guarded_store.get(KEY, "x")


class TestGet:
    def test_missing_id(self, store):
        with pytest.raises(NotFound):
            store.get(KEY, "missing")

    def test_unauthorized(self, guarded_store):
        guarded_store.add(KEY, _auction(auction_id="x"))
        with pytest.raises(Unauthorized):
            guarded_store.get("wrong", "x")

    def test_returned_record_is_live(self, store, clock):
        """Bids placed on a fetched auction are visible through the store."""
        store.add(KEY, _auction(auction_id="x"))
        store.get(KEY, "x").add_bid(Bid("A", 30, T0), DURING)
        assert len(store.get(KEY, "x").bids) == 1


class TestDelete:
    def test_delete_removes_entry(self, store):
        store.add(KEY, _auction(auction_id="x"))
        store.delete(KEY, "x")
        with pytest.raises(NotFound):
            store.get(KEY, "x")
        assert store.all_active(DURING) == []

    def test_delete_missing_is_idempotent(self, store):
        store.delete(KEY, "missing")
        store.delete(KEY, "missing")

    def test_unauthorized_delete(self, guarded_store):
        guarded_store.add(KEY, _auction(auction_id="x"))
        with pytest.raises(Unauthorized):
            guarded_store.delete("", "x")
        assert guarded_store.get(KEY, "x").id == "x"


class TestUpdate:
    def test_update_pending_auction(self, store, clock):
        store.add(KEY, _auction(auction_id="x"))
        clock.set(BEFORE)
        updated = store.update(KEY, "x", _auction(reserve=5))
        assert updated.id == "x"
        assert store.get(KEY, "x").reserve_price == 5

    def test_update_completed_auction_keeps_bids(self, store, clock):
        store.add(KEY, _auction(auction_id="x"))
        clock.set(DURING)
        store.place_bid("x", Bid("A", 21, T0))
        store.place_bid("x", Bid("B", 22, T0 + timedelta(seconds=1)))
        original_bids = list(store.get(KEY, "x").bids)

        clock.set(AFTER)
        replacement = _auction(reserve=1)
        replacement.bids.append(Bid("Z", 1000, T0))
        store.update(KEY, "x", replacement)

        assert store.get(KEY, "x").bids == original_bids

    def test_update_in_progress_rejected(self, store, clock):
        store.add(KEY, _auction(auction_id="x"))
        clock.set(DURING)
        with pytest.raises(AuctionInProgress):
            store.update(KEY, "x", _auction(reserve=1))
        assert store.get(KEY, "x").reserve_price == 20.45

    def test_update_missing(self, store):
        with pytest.raises(NotFound):
            store.update(KEY, "missing", _auction())

    def test_unauthorized_update(self, guarded_store):
        guarded_store.add(KEY, _auction(auction_id="x"))
        with pytest.raises(Unauthorized):
            guarded_store.update("wrong", "x", _auction(reserve=1))
        assert guarded_store.get(KEY, "x").reserve_price == 20.45


class TestBidding:
    def test_place_bid_uses_store_clock(self, store, clock):
        store.add(KEY, _auction(auction_id="x"))
        with pytest.raises(AuctionClosed):
            store.place_bid("x", Bid("A", 30, T0))
        clock.set(DURING)
        store.place_bid("x", Bid("A", 30, T0))
        assert len(store.get(KEY, "x").bids) == 1

    def test_place_bid_missing_auction(self, store, clock):
        clock.set(DURING)
        with pytest.raises(NotFound):
            store.place_bid("missing", Bid("A", 30, T0))

    def test_result(self, store, clock):
        store.add(KEY, _auction(auction_id="x"))
        clock.set(DURING)
        store.place_bid("x", Bid("A", 30, T0))
        store.place_bid("x", Bid("B", 31, T0))
        with pytest.raises(AuctionInProgress):
            store.result(KEY, "x")
        clock.set(AFTER)
        assert store.result(KEY, "x") == "B"

    def test_concurrent_place_bid(self, store, clock):
        store.add(KEY, _auction(auction_id="x"))
        clock.set(DURING)
        bidders = 32
        barrier = threading.Barrier(bidders)

        def bid(index: int) -> None:
            barrier.wait()
            store.place_bid("x", Bid(f"bidder-{index}", 25, T0))

        threads = [threading.Thread(target=bid, args=(i,)) for i in range(bidders)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store.get(KEY, "x").bids) == bidders

    def test_concurrent_add_and_delete(self, store):
        """Concurrent writers on distinct ids never lose entries."""
        workers = 16
        barrier = threading.Barrier(workers)

        def churn(index: int) -> None:
            barrier.wait()
            for round_ in range(20):
                auction_id = f"a-{index}-{round_}"
                store.add(KEY, _auction(auction_id=auction_id))
                if round_ % 2:
                    store.delete(KEY, auction_id)

        threads = [threading.Thread(target=churn, args=(i,)) for i in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store.all_active(DURING)) == workers * 10
