from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, FrozenSet, Set

import base58

from .project_constants import DEFAULT_BLACKLIST, HOLDER_PAGE_SIZE
from .rpc import RpcClient

logger = logging.getLogger(__name__)


def scan_holders(
    rpc: RpcClient,
    mint: str,
    decimals: int,
    page_size: int = HOLDER_PAGE_SIZE,
) -> Dict[str, float]:
    """
    Page through getTokenAccounts and sum decimal-adjusted balances per owner.
    Stops on a page shorter than page_size or a response without token_accounts.
    """
    balances: Dict[str, float] = defaultdict(float)
    scale = 10**decimals
    page = 1
    accounts_seen = 0

    while True:
        accounts = rpc.get_token_accounts(mint, page=page, limit=page_size)
        if accounts is None:
            break

        for acc in accounts:
            owner = acc.get("owner")
            if not owner:
                continue
            balances[owner] += int(acc.get("amount") or 0) / scale

        accounts_seen += len(accounts)
        if len(accounts) < page_size:
            break
        page += 1

    logger.info("Accounts fetched  : %d over %d page(s)", accounts_seen, page)
    logger.info("Unique owners     : %d", len(balances))
    return dict(balances)


def load_excluded_wallets(path: str | None) -> Set[str]:
    if not path:
        return set()
    out: Set[str] = set()
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            w = line.strip()
            if not w or w.startswith("#"):
                continue
            out.add(w)
    return out


def build_blacklist(path: str | None = None) -> FrozenSet[str]:
    return frozenset(DEFAULT_BLACKLIST | load_excluded_wallets(path))


def is_valid_wallet(address: str) -> bool:
    """Solana addresses are base58 encodings of 32-byte public keys."""
    try:
        return len(base58.b58decode(address)) == 32
    except ValueError:
        return False
