"""
Read-only JSON-RPC client for the chain node.
  - eth_blockNumber / eth_chainId / eth_getLogs / eth_call
  - shared HTTP session (Keep-Alive, pooled for the enrichment fan-out)
  - backs off on HTTP 429/5xx and rate-limit errors using Retry-After/exponential backoff
All failures surface as RpcTransportError or RpcProtocolError.
"""

import itertools
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter

from chain_leaderboard.errors import RpcProtocolError, RpcTransportError
from chain_leaderboard.models import hex_to_int

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = (429, 502, 503, 504)
RATE_LIMIT_HINTS = ("rate limit", "too many requests", "capacity", "exceeded the quota")


class RpcClient:
    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_s: float = 30,
        max_retries: int = 6,
        pool_size: int = 8,
        session: Optional[requests.Session] = None,
        sleep=time.sleep,
    ):
        self.rpc_url = rpc_url
        self.timeout_s = timeout_s
        self.max_retries = max(1, int(max_retries))
        self._ids = itertools.count(1)
        self._sleep = sleep
        if session is None:
            session = requests.Session()
            adapter = HTTPAdapter(pool_connections=pool_size, pool_maxsize=pool_size)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session

    # ---------- JSON-RPC ----------
    def call(self, method: str, params: Sequence[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": list(params)}
        backoff = 0.5
        for attempt in range(1, self.max_retries + 1):
            last = attempt == self.max_retries
            try:
                r = self.session.post(self.rpc_url, json=payload, timeout=self.timeout_s)
            except requests.exceptions.RequestException as e:
                if last:
                    raise RpcTransportError(method, f"request failed after {attempt} attempts: {e}") from e
                logger.warning("%s transport error (attempt %d/%d): %s", method, attempt, self.max_retries, e)
                self._sleep(backoff)
                backoff = min(backoff * 2, 8.0)
                continue

            if r.status_code in RETRYABLE_STATUS and not last:
                ra = r.headers.get("Retry-After")
                delay = float(ra) if ra and ra.isdigit() else backoff
                logger.warning("%s HTTP %d, retrying in %.1fs", method, r.status_code, delay)
                self._sleep(delay)
                backoff = min(backoff * 2, 8.0)
                continue
            if not r.ok:
                body = (r.text or "")[:200] or "<empty>"
                raise RpcTransportError(method, f"HTTP {r.status_code} - body: {body}", status_code=r.status_code)

            try:
                resp = r.json()
            except ValueError as e:
                raise RpcProtocolError(method, f"invalid JSON response: {(r.text or '')[:200]!r}") from e
            if not isinstance(resp, dict):
                raise RpcProtocolError(method, f"unexpected response envelope: {resp!r}")

            error = resp.get("error")
            if error:
                message = error.get("message") if isinstance(error, dict) else str(error)
                code = error.get("code") if isinstance(error, dict) else None
                if not last and any(h in str(message).lower() for h in RATE_LIMIT_HINTS):
                    logger.warning("%s rate limited by node: %s", method, message)
                    self._sleep(backoff)
                    backoff = min(backoff * 2, 8.0)
                    continue
                raise RpcProtocolError(method, f"error: {message}", code=code)
            if "result" not in resp:
                raise RpcProtocolError(method, f"response has neither result nor error: {resp!r}")
            return resp["result"]

        # unreachable: the last attempt always returns or raises
        raise RpcTransportError(method, "request failed")

    # ---------- Reads ----------
    def block_number(self) -> int:
        result = self.call("eth_blockNumber", [])
        try:
            return hex_to_int(result)
        except (TypeError, ValueError) as e:
            raise RpcProtocolError("eth_blockNumber", f"could not parse block number {result!r}") from e

    def chain_id(self) -> int:
        result = self.call("eth_chainId", [])
        try:
            return hex_to_int(result)
        except (TypeError, ValueError) as e:
            raise RpcProtocolError("eth_chainId", f"could not parse chain id {result!r}") from e

    def get_logs(self, address: str, topics: List[Any], from_block: int, to_block: int) -> List[Dict[str, Any]]:
        flt = {
            "address": address,
            "fromBlock": hex(int(from_block)),
            "toBlock": hex(int(to_block)),
            "topics": topics,
        }
        result = self.call("eth_getLogs", [flt])
        if result is None:
            return []
        if not isinstance(result, list):
            raise RpcProtocolError("eth_getLogs", f"expected a list of logs, got {type(result).__name__}")
        return result

    def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        result = self.call("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str):
            raise RpcProtocolError("eth_call", f"expected hex string, got {result!r}")
        return result
