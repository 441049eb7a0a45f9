from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

from .errors import MissingConfiguration
from .project_constants import DEFAULT_SLOT_RPC_URL, UPDATE_INTERVAL_MINUTES


@dataclass(frozen=True)
class Settings:
    token_mint: str
    rpc_url: str
    slot_rpc_url: str = DEFAULT_SLOT_RPC_URL
    update_interval_s: float = UPDATE_INTERVAL_MINUTES * 60
    data_dir: str = "."
    blacklist_file: Optional[str] = None
    timeout_s: float = 30.0

    def missing(self) -> List[str]:
        out: List[str] = []
        if not self.token_mint:
            out.append("DEFAULT_TOKEN")
        if not self.rpc_url:
            out.append("HELIUS_KEY")
        return out

    def require(self) -> None:
        missing = self.missing()
        if missing:
            raise MissingConfiguration(
                f"Missing {' or '.join(missing)}. Put it in .env or export it."
            )

    @staticmethod
    def from_env(rpc_url_override: str | None = None) -> "Settings":
        load_dotenv()

        token = os.getenv("DEFAULT_TOKEN", "").strip()

        # If user provides --rpc-url, trust it. Else RPC_URL, else build helius url from key.
        rpc_url = (rpc_url_override or os.getenv("RPC_URL", "")).strip()
        if not rpc_url:
            helius_key = (
                os.getenv("HELIUS_KEY", "").strip()
                or os.getenv("HELIUS_API_KEY", "").strip()
            )
            if helius_key:
                rpc_url = f"https://mainnet.helius-rpc.com/?api-key={helius_key}"

        return Settings(
            token_mint=token,
            rpc_url=rpc_url,
            slot_rpc_url=os.getenv("SLOT_RPC_URL", "").strip() or DEFAULT_SLOT_RPC_URL,
            update_interval_s=float(
                os.getenv("UPDATE_INTERVAL_MINUTES", str(UPDATE_INTERVAL_MINUTES))
            )
            * 60,
            data_dir=os.getenv("DATA_DIR", "").strip() or ".",
            blacklist_file=os.getenv("BLACKLIST_FILE", "").strip() or None,
            timeout_s=float(os.getenv("HTTP_TIMEOUT", "30")),
        )
