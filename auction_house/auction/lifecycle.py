"""Auction lifecycle states derived from the clock."""

from __future__ import annotations

from datetime import datetime
from enum import Enum


class AuctionState(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


def is_active(start: datetime, end: datetime, now: datetime) -> bool:
    # Both boundaries are exclusive: bidding opens after start and closes at end.
    return start < now < end


def is_pending(start: datetime, now: datetime) -> bool:
    return now < start


def is_completed(end: datetime, now: datetime) -> bool:
    return now >= end


def state_at(start: datetime, end: datetime, now: datetime) -> AuctionState:
    if is_completed(end, now):
        return AuctionState.COMPLETED
    if is_active(start, end, now):
        return AuctionState.ACTIVE
    return AuctionState.PENDING
