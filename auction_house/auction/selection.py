"""Winner selection helpers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from .models import Bid


def select_winner(bids: Iterable[Bid]) -> Optional[Bid]:
    # Highest price wins; min() keeps the first of equal keys, so insertion
    # order settles bids that share both price and submission time.
    return min(bids, key=lambda bid: (-bid.price, bid.submitted_at), default=None)
