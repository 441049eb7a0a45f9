from __future__ import annotations

from typing import Any, Dict, List
import httpx

from .errors import UpstreamFetchError


class RpcClient:
    def __init__(self, rpc_url: str, timeout_s: float = 60.0) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s)

    def close(self) -> None:
        self.client.close()

    def get_slot(self, commitment: str = "finalized") -> int:
        """Returns the current slot."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getSlot",
            "params": [{"commitment": commitment}],
        }
        data = self._post(payload)
        try:
            return int(data["result"])
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamFetchError(f"getSlot returned no slot: {data!r}") from e

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self.client.post(self.rpc_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as e:
            raise UpstreamFetchError(f"RPC {payload['method']} failed: {e}") from e
        except ValueError as e:
            raise UpstreamFetchError(f"RPC {payload['method']} returned non-JSON") from e
        if not isinstance(data, dict):
            raise UpstreamFetchError(f"RPC {payload['method']} returned {type(data).__name__}")
        if "error" in data:
            raise UpstreamFetchError(f"RPC error: {data['error']}")
        return data

    def get_token_supply(self, mint: str) -> Dict[str, Any]:
        """Returns ``result.value`` of getTokenSupply (``amount``, ``decimals``, ...)."""
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getTokenSupply",
            "params": [mint],
        }
        data = self._post(payload)
        result = data.get("result")
        if not isinstance(result, dict) or not isinstance(result.get("value"), dict):
            raise UpstreamFetchError("Couldn't fetch token supply or decimals")
        return result["value"]

    def get_token_accounts(self, mint: str, page: int, limit: int) -> List[Dict[str, Any]] | None:
        """
        One page of the Helius DAS getTokenAccounts listing.
        Returns None when the response carries no token_accounts (end of data).
        """
        payload = {
            "jsonrpc": "2.0",
            "id": "1",
            "method": "getTokenAccounts",
            "params": {
                "mint": mint,
                "page": page,
                "limit": limit,
                "displayOptions": {},
            },
        }
        data = self._post(payload)
        result = data.get("result")
        if not isinstance(result, dict):
            return None
        accounts = result.get("token_accounts")
        if accounts is None:
            return None
        return list(accounts)

    def get_blockhash_for_slot(self, slot: int) -> str:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "getBlock",
            "params": [
                slot,
                {"encoding": "json", "transactionDetails": "none", "rewards": False},
            ],
        }
        data = self._post(payload)
        result = data.get("result")
        if not result or "blockhash" not in result:
            raise UpstreamFetchError(f"Slot {slot}: getBlock returned no blockhash.")
        return result["blockhash"]
