"""
Read-only views over the leaderboard cache.

Each view returns ``(payload, status_code)`` so any HTTP layer can serve it
as-is. Views never wait on a running refresh.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Collection, Optional, Tuple

from .cache import LeaderboardCache
from .config import Settings
from .errors import MilestonePersistError, NotReady, UpstreamFetchError
from .milestones import MilestoneTracker
from .project_constants import (
    AIRDROP_SNAPSHOT_CAP,
    COMMIT_200M_TEST_FILE,
    GIVEAWAY_COMMIT_CAP,
    LEADERBOARD_TOP_N,
    SNAPSHOT_300M_TEST_FILE,
)
from .token_accounts import is_valid_wallet

View = Tuple[Any, int]

NOT_READY: View = ({"error": "Leaderboard not ready"}, 503)


def _iso(ts: Optional[datetime]) -> Optional[str]:
    return ts.isoformat() if ts else None


def leaderboard_view(cache: LeaderboardCache, top_n: int = LEADERBOARD_TOP_N) -> View:
    if not cache.ready:
        if cache.is_updating:
            return {"loading": True}, 200
        return NOT_READY
    return [e.to_dict() for e in cache.snapshot.entries[:top_n]], 200


def wallet_view(cache: LeaderboardCache, wallet: Optional[str], blacklist: Collection[str]) -> View:
    """Backs both /myentries?wallet= and /wallet/<address>."""
    if not wallet:
        return {"error": "Wallet address required"}, 400
    if wallet in blacklist:
        return {"error": "This wallet is blacklisted"}, 200

    snapshot = cache.snapshot
    found = snapshot.find(wallet)
    if found:
        return found.to_dict(), 200
    if is_valid_wallet(wallet):
        message = "Not ranked or no tokens held"
    else:
        message = "Not a valid Solana address"
    return {
        "rank": None,
        "wallet": wallet,
        "balance": 0,
        "multiplier": 0,
        "multipliedEntries": 0,
        "baseEntries": 0,
        "entries": 0,
        "pct": 0,
        "currentValue": 0,
        "source": snapshot.price_source,
        "formRequired": True,
        "message": message,
    }, 200


def price_view(cache: LeaderboardCache, settings: Settings) -> View:
    if not settings.token_mint:
        return {"error": "Missing DEFAULT_TOKEN"}, 400
    if not cache.ready:
        return NOT_READY
    snapshot = cache.snapshot
    return {
        "token": settings.token_mint,
        "price": snapshot.price,
        "source": snapshot.price_source,
        "lastUpdated": _iso(snapshot.updated_at),
    }, 200


def supply_view(cache: LeaderboardCache, settings: Settings) -> View:
    if settings.missing():
        return {"error": "Missing DEFAULT_TOKEN or HELIUS_KEY"}, 400
    if not cache.ready:
        return NOT_READY
    snapshot = cache.snapshot
    return {
        "token": settings.token_mint,
        "supply": snapshot.supply,
        "lastUpdated": _iso(snapshot.updated_at),
    }, 200


def snapshot_minimal_view(cache: LeaderboardCache) -> View:
    try:
        snapshot = cache.ready_snapshot()
    except NotReady:
        return NOT_READY
    return [e.to_minimal() for e in snapshot.entries], 200


def snapshot_full_view(cache: LeaderboardCache) -> View:
    try:
        snapshot = cache.ready_snapshot()
    except NotReady:
        return NOT_READY
    return [e.to_dict() for e in snapshot.entries], 200


def milestone_file_view(tracker: MilestoneTracker, name: str) -> View:
    """Returns the file path to send, or a 404 payload."""
    path = tracker.milestone_path(name)
    if path is None:
        return {"error": f"{name} not found"}, 404
    return path, 200


def milestone_trigger_view(tracker: MilestoneTracker, cache: LeaderboardCache, which: str) -> View:
    """Manual trigger: writes the *_test.json files without touching the live latches."""
    entries = cache.snapshot.entries
    try:
        if which == "200m":
            record = tracker.commit_200m(float(GIVEAWAY_COMMIT_CAP), entries, test=True)
            written = COMMIT_200M_TEST_FILE
        elif which == "300m":
            record = tracker.dump_300m(float(AIRDROP_SNAPSHOT_CAP), entries, test=True)
            written = SNAPSHOT_300M_TEST_FILE
        else:
            return {"error": f"Unknown milestone {which!r}"}, 404
    except (MilestonePersistError, UpstreamFetchError) as e:
        return {"error": str(e)}, 500
    return {"ok": True, "file": written, "record": record}, 200


def status_view(cache: LeaderboardCache, tracker: MilestoneTracker) -> View:
    snapshot = cache.snapshot
    return {
        "ready": cache.ready,
        "updating": cache.is_updating,
        "holders": len(snapshot.entries),
        "marketCap": snapshot.market_cap,
        "minTokens": snapshot.min_tokens,
        "lastUpdated": _iso(snapshot.updated_at),
        "now": datetime.now(timezone.utc).isoformat(),
        **tracker.state,
    }, 200
