"""Process-wide holder of the latest published leaderboard."""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple

from .errors import NotReady
from .leaderboard import LeaderboardEntry


@dataclass(frozen=True)
class LeaderboardSnapshot:
    """One completed refresh. Replaced as a whole, never mutated."""

    entries: Tuple[LeaderboardEntry, ...] = ()
    updated_at: Optional[datetime] = None
    supply: float = 0.0
    price: float = 0.0
    price_source: str = "cache"
    market_cap: float = 0.0
    min_tokens: int = 0

    def find(self, wallet: str) -> Optional[LeaderboardEntry]:
        for entry in self.entries:
            if entry.wallet == wallet:
                return entry
        return None


@dataclass
class LeaderboardCache:
    """
    Written only by the refresh scheduler, read by everything else.

    Readers take ``snapshot`` once and work on that object, so an in-flight
    refresh never shows them a half-built leaderboard.
    """

    _snapshot: LeaderboardSnapshot = field(default_factory=LeaderboardSnapshot)
    _is_updating: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def snapshot(self) -> LeaderboardSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def is_updating(self) -> bool:
        with self._lock:
            return self._is_updating

    @property
    def ready(self) -> bool:
        return self.snapshot.updated_at is not None

    def set_updating(self, value: bool) -> None:
        with self._lock:
            self._is_updating = value

    def publish(self, snapshot: LeaderboardSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot

    def ready_snapshot(self) -> LeaderboardSnapshot:
        """Latest completed snapshot; raises NotReady before the first refresh."""
        snapshot = self.snapshot
        if snapshot.updated_at is None:
            raise NotReady("Leaderboard not ready")
        return snapshot
