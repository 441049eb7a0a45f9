from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import UpstreamFetchError
from .rpc import RpcClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenSupply:
    decimals: int
    supply: float


def read_supply(rpc: RpcClient, mint: str) -> TokenSupply:
    value = rpc.get_token_supply(mint)
    try:
        decimals = int(value["decimals"])
        raw_amount = int(value["amount"])
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamFetchError("Couldn't fetch token supply or decimals") from e

    supply = raw_amount / (10**decimals)
    logger.debug("Supply %s (decimals=%d)", supply, decimals)
    return TokenSupply(decimals=decimals, supply=supply)
