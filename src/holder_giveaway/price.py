from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple

import httpx

from .project_constants import DEXSCREENER_API, JUPITER_API, PUMPFUN_API

logger = logging.getLogger(__name__)

CACHE_SOURCE = "cache"


def _pumpfun_price(data: Any, mint: str) -> Any:
    return data.get("usdPrice")


def _dexscreener_price(data: Any, mint: str) -> Any:
    pairs = data.get("pairs") or []
    return pairs[0].get("priceUsd") if pairs else None


def _jupiter_price(data: Any, mint: str) -> Any:
    return ((data.get("data") or {}).get(mint) or {}).get("price")


class PriceOracle:
    """
    USD price from an ordered chain of providers.

    The first provider that answers with a positive numeric price wins and its
    tag is kept in ``source``. When every provider fails the last good price is
    returned (0.0 before the first success) and ``source`` becomes ``"cache"``.
    """

    def __init__(self, mint: str, timeout_s: float = 30.0) -> None:
        self.mint = mint
        self.client = httpx.Client(timeout=timeout_s)
        self.last_price = 0.0
        self.source = CACHE_SOURCE
        self.last_updated: Optional[datetime] = None

    def close(self) -> None:
        self.client.close()

    def providers(self) -> List[Tuple[str, str, Callable[[Any, str], Any]]]:
        mint = self.mint
        return [
            ("pumpfun", f"{PUMPFUN_API}/coins/{mint}", _pumpfun_price),
            ("dexscreener", f"{DEXSCREENER_API}/latest/dex/tokens/{mint}", _dexscreener_price),
            ("jupiter", f"{JUPITER_API}/v6/price?ids={mint}&vsToken=USDC", _jupiter_price),
        ]

    def fetch(self) -> float:
        for tag, url, extract in self.providers():
            price = self._try_provider(tag, url, extract)
            if price is not None:
                self.last_price = price
                self.source = tag
                self.last_updated = datetime.now(timezone.utc)
                return price

        logger.warning("All price providers failed; using cached price %s", self.last_price)
        self.source = CACHE_SOURCE
        return self.last_price

    def _try_provider(
        self, tag: str, url: str, extract: Callable[[Any, str], Any]
    ) -> Optional[float]:
        try:
            resp = self.client.get(url)
            if resp.status_code != 200:
                logger.debug("Price provider %s answered %d", tag, resp.status_code)
                return None
            data = resp.json()
            raw = extract(data, self.mint) if isinstance(data, dict) else None
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning("Price provider %s failed: %s", tag, e)
            return None

        try:
            price = float(raw) if raw is not None else None
        except (TypeError, ValueError):
            price = None
        if not price or not math.isfinite(price) or price <= 0:
            logger.debug("Price provider %s returned no usable price", tag)
            return None
        return price
