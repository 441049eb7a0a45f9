"""Shared pytest fixtures for the holder-giveaway test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Dict, List
from unittest.mock import MagicMock

import httpx
import pytest

from holder_giveaway.config import Settings
from holder_giveaway.leaderboard import LeaderboardEntry, build_leaderboard
from holder_giveaway.milestones import MilestoneTracker

FIXED_NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)

# Real 32-byte base58 addresses
WALLET_A = "So11111111111111111111111111111111111111112"
WALLET_B = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
WALLET_C = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        token_mint="MINT",
        rpc_url="http://rpc.test",
        slot_rpc_url="http://slot.test",
        update_interval_s=0,
        data_dir=str(tmp_path),
    )


@pytest.fixture()
def board() -> List[LeaderboardEntry]:
    """supply=1,000,000 at $0.50 -> market cap $500k, minTokens=10."""
    return build_leaderboard(
        {WALLET_A: 50_000, WALLET_B: 5, WALLET_C: 1_000},
        supply=1_000_000,
        price=0.5,
        source="pumpfun",
    )


@pytest.fixture()
def slot_source() -> MagicMock:
    return MagicMock(return_value=1_000)


@pytest.fixture()
def tracker(tmp_path, slot_source) -> MilestoneTracker:
    return MilestoneTracker(str(tmp_path), slot_source=slot_source, clock=lambda: FIXED_NOW)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """httpx client whose requests are answered in-process by *handler*."""
    return httpx.Client(transport=httpx.MockTransport(handler))


def json_response(body: Dict, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=body)
