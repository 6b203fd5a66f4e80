"""Operational stats endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from ..auction.store import AuctionStore

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_store(request: Request) -> AuctionStore:
    return request.app.state.store


@router.get("/stats")
def stats(store: AuctionStore = Depends(_get_store)) -> dict[str, Any]:
    summary = store.stats()
    total = summary["total_auctions"]
    summary["bids_per_auction"] = round(summary["total_bids"] / total, 4) if total else 0.0
    return summary
