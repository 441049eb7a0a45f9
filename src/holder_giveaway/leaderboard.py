from __future__ import annotations

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping

from .project_constants import (
    BASE_ENTRIES,
    MAX_ENTRIES,
    MAX_MULTIPLIER,
    MIN_TOKEN_TIERS,
    MIN_TOKENS_FLOOR,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    wallet: str
    balance: float
    pct: float
    multiplier: float
    multiplied_entries: int
    base_entries: int
    entries: int
    current_value: float
    source: str
    form_required: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "wallet": self.wallet,
            "balance": self.balance,
            "pct": self.pct,
            "multiplier": self.multiplier,
            "multipliedEntries": self.multiplied_entries,
            "baseEntries": self.base_entries,
            "entries": self.entries,
            "currentValue": self.current_value,
            "source": self.source,
            "formRequired": self.form_required,
        }

    def to_minimal(self) -> Dict[str, Any]:
        # Only the fields the draw needs
        return {
            "wallet": self.wallet,
            "entries": self.entries,
            "balance": self.balance,
            "rank": self.rank,
        }


def _round4(x: float) -> float:
    # Exact halves round up, not to even
    return float(Decimal(x).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP))


def get_multiplier(pct: float) -> float:
    """
    Continuous multiplier from % of supply held, capped at 10x.

      pct < 0.001          -> 8.0
      0.001 <= pct < 0.01  -> 8.0 .. 9.0 (linear, 4 dp)
      0.01  <= pct < 0.1   -> 9.0 .. 10.0 (linear, 4 dp)
      pct >= 0.1           -> 10.0
    """
    if pct < 0.001:
        return 8.0
    if pct < 0.01:
        t = (pct - 0.001) / (0.01 - 0.001)
        return min(_round4(8.0 + t * 1.0), MAX_MULTIPLIER)
    if pct < 0.1:
        t = (pct - 0.01) / (0.1 - 0.01)
        return min(_round4(9.0 + t * 1.0), MAX_MULTIPLIER)
    return MAX_MULTIPLIER


def get_min_tokens(market_cap: float) -> int:
    """Minimum balance that earns entries; tier upper bounds are exclusive."""
    for upper_cap, min_tokens in MIN_TOKEN_TIERS:
        if market_cap < upper_cap:
            return min_tokens
    return MIN_TOKENS_FLOOR


def market_cap(supply: float, price: float) -> float:
    return supply * price


def build_leaderboard(
    balances: Mapping[str, float],
    supply: float,
    price: float,
    blacklist: Iterable[str] = (),
    source: str = "cache",
) -> List[LeaderboardEntry]:
    if supply <= 0:
        raise ValueError(f"Supply must be positive, got {supply}")

    excluded = set(blacklist)
    holders = [
        (wallet, float(balance))
        for wallet, balance in balances.items()
        if wallet not in excluded
    ]
    # Balance descending, wallet address ascending on ties (deterministic ranks)
    holders.sort(key=lambda x: (-x[1], x[0]))

    cap = market_cap(supply, price)
    min_tokens = get_min_tokens(cap)
    logger.info("Market cap $%s -> minTokens = %d", f"{cap:,.2f}", min_tokens)

    board: List[LeaderboardEntry] = []
    for idx, (wallet, balance) in enumerate(holders):
        pct = balance / supply * 100
        if balance >= min_tokens:
            multiplier = get_multiplier(pct)
            multiplied = math.floor(balance * multiplier)
            base = BASE_ENTRIES
            entries = min(base + multiplied, MAX_ENTRIES)
            form_required = False
        else:
            multiplier, multiplied, base, entries = 0.0, 0, 0, 0
            form_required = True

        board.append(
            LeaderboardEntry(
                rank=idx + 1,
                wallet=wallet,
                balance=balance,
                pct=pct,
                multiplier=multiplier,
                multiplied_entries=multiplied,
                base_entries=base,
                entries=entries,
                current_value=balance * price,
                source=source,
                form_required=form_required,
            )
        )
    return board
