"""
Per-wallet live contract read (bonus percent) merged into the aggregate.

Reads are independent, so they fan out on a small thread pool. A failed read
leaves that wallet at bonus 0 and is reported back; it never aborts the run.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from typing import Dict, List, Mapping, Tuple

from chain_leaderboard.errors import DecodeError, RpcError
from chain_leaderboard.models import ParticipantStats
from chain_leaderboard.on_chain.abi import FunctionSignature

logger = logging.getLogger(__name__)


def read_bonus(client, contract_address: str, function: FunctionSignature, wallet: str) -> int:
    result = client.eth_call(contract_address, function.encode_call(wallet))
    value = function.decode_result(result)[0]
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"{function.canonical} returned non-integer {value!r}")
    return value


def enrich(
    client,
    stats: Mapping[str, ParticipantStats],
    contract_address: str,
    function: FunctionSignature,
    max_workers: int = 8,
) -> Tuple[Dict[str, ParticipantStats], List[str]]:
    enriched: Dict[str, ParticipantStats] = dict(stats)
    failures: List[str] = []
    if not stats:
        return enriched, failures

    workers = max(1, min(max_workers, len(stats)))
    with ThreadPoolExecutor(max_workers=workers) as ex:
        futures = {
            wallet: ex.submit(read_bonus, client, contract_address, function, wallet)
            for wallet in stats
        }
        for wallet, future in futures.items():
            try:
                bonus = future.result()
            except (RpcError, DecodeError) as e:
                logger.warning("Failed to fetch %s for wallet %s: %s", function.name, wallet, e)
                failures.append(wallet)
                continue
            enriched[wallet] = replace(enriched[wallet], bonus_percent=bonus)

    failures.sort()
    logger.info("Enriched %d wallets (%d failed)", len(stats) - len(failures), len(failures))
    return enriched, failures
