from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import FrozenSet, Optional

from .cache import LeaderboardCache, LeaderboardSnapshot
from .config import Settings
from .errors import MissingConfiguration, UpstreamFetchError
from .leaderboard import build_leaderboard, get_min_tokens, market_cap
from .milestones import MilestoneTracker
from .price import PriceOracle
from .rpc import RpcClient
from .supply import read_supply
from .token_accounts import scan_holders

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """
    Runs the refresh cycle: supply -> holders -> price -> leaderboard -> milestones.

    At most one cycle runs at a time; a trigger that arrives while one is in
    flight is skipped. Failed cycles leave the cache as it was.
    """

    def __init__(
        self,
        settings: Settings,
        rpc: RpcClient,
        price_oracle: PriceOracle,
        tracker: MilestoneTracker,
        cache: LeaderboardCache,
        blacklist: FrozenSet[str],
    ) -> None:
        self.settings = settings
        self.rpc = rpc
        self.price_oracle = price_oracle
        self.tracker = tracker
        self.cache = cache
        self.blacklist = blacklist
        self._busy = threading.Lock()

    def run_once(self) -> bool:
        """Run one refresh. Returns True if a new leaderboard was published."""
        if not self._busy.acquire(blocking=False):
            logger.info("Refresh already running; skipping this trigger")
            return False

        self.cache.set_updating(True)
        try:
            self.settings.require()
            mint = self.settings.token_mint

            token_supply = read_supply(self.rpc, mint)
            balances = scan_holders(self.rpc, mint, token_supply.decimals)
            price = self.price_oracle.fetch()
            source = self.price_oracle.source

            cap = market_cap(token_supply.supply, price)
            board = build_leaderboard(
                balances,
                supply=token_supply.supply,
                price=price,
                blacklist=self.blacklist,
                source=source,
            )
            snapshot = LeaderboardSnapshot(
                entries=tuple(board),
                updated_at=datetime.now(timezone.utc),
                supply=token_supply.supply,
                price=price,
                price_source=source,
                market_cap=cap,
                min_tokens=get_min_tokens(cap),
            )
            self.cache.publish(snapshot)
            logger.info(
                "Leaderboard updated: %d holders at %s",
                len(board),
                snapshot.updated_at.isoformat(),
            )

            fired = self.tracker.observe(cap, board)
            if fired:
                logger.info("Milestones fired: %s", ", ".join(fired))
            return True
        except (UpstreamFetchError, MissingConfiguration, ValueError) as e:
            logger.error("Leaderboard update error: %s", e)
            return False
        finally:
            self.cache.set_updating(False)
            self._busy.release()

    def run_forever(self, stop_event: Optional[threading.Event] = None) -> None:
        """Refresh now, then every ``settings.update_interval_s`` until stopped."""
        stop = stop_event or threading.Event()
        interval = self.settings.update_interval_s
        logger.info("Scheduler started (interval %.0fs)", interval)

        while not stop.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Unexpected refresh failure")
            stop.wait(interval)

        logger.info("Scheduler stopped")
