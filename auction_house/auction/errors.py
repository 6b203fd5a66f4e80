"""Error taxonomy for auction construction, bidding, results and storage."""

from __future__ import annotations


class AuctionError(ValueError):
    """Base class for every error raised by the auction core."""


class ConstructionError(AuctionError):
    """Raised when an auction cannot be built from the given terms."""


class InvalidTimeRange(ConstructionError):
    def __init__(self, start: object, end: object) -> None:
        super().__init__(f"start {start} must be before end {end}")


class InvalidPrice(ConstructionError):
    def __init__(self, price: object) -> None:
        super().__init__(f"reserve price {price} must be a non-negative number")


class BidError(AuctionError):
    """Raised when a bid is rejected."""


class AuctionClosed(BidError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(f"auction {auction_id} is closed, cannot bid")


class BidTooLow(BidError):
    def __init__(self, price: object, reserve_price: object) -> None:
        super().__init__(f"bid {price} is below reserve price {reserve_price}")


class ResultError(AuctionError):
    """Raised when an auction has no result to report."""


class StoreError(AuctionError):
    """Raised by guarded store operations."""


class AuctionInProgress(ResultError, StoreError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(f"auction {auction_id} is still in progress")


class NoBids(ResultError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(f"auction {auction_id} has no bids, no winner")


class Unauthorized(StoreError):
    def __init__(self) -> None:
        super().__init__("invalid secret key")


class DuplicateId(StoreError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(f"auction {auction_id} already exists")


class NotFound(StoreError):
    def __init__(self, auction_id: str) -> None:
        super().__init__(f"auction {auction_id} not found")
