"""
Chunked eth_getLogs scan over an inclusive block range.

Chunks are queried strictly in increasing block order and results are
concatenated as returned. A failed chunk fails the whole scan, except that a
chunk the node rejects as too large is halved and retried down to
``min_chunk_size``.
"""

import logging
from typing import Any, Iterator, List, Tuple

from chain_leaderboard.errors import RpcProtocolError
from chain_leaderboard.models import RawLogEntry
from chain_leaderboard.on_chain.rpc import RATE_LIMIT_HINTS

logger = logging.getLogger(__name__)

OVERSIZE_HINTS = (
    "query returned more than",
    "too many results",
    "response size",
    "log response",
    "block range",
)


def iter_chunks(from_block: int, to_block: int, chunk_size: int) -> Iterator[Tuple[int, int]]:
    """Consecutive inclusive [start, end] windows no wider than ``chunk_size``."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    start = from_block
    while start <= to_block:
        end = min(start + chunk_size - 1, to_block)
        yield start, end
        start = end + 1


def _is_oversize(e: RpcProtocolError) -> bool:
    msg = str(e).lower()
    if any(h in msg for h in RATE_LIMIT_HINTS):
        return False
    return any(h in msg for h in OVERSIZE_HINTS)


def scan(
    client,
    address: str,
    topics: List[Any],
    from_block: int,
    to_block: int,
    chunk_size: int,
    *,
    min_chunk_size: int = 1,
) -> List[RawLogEntry]:
    if from_block > to_block:
        logger.info("Nothing to scan for %s: from block %d is past to block %d", address, from_block, to_block)
        return []

    all_logs: List[RawLogEntry] = []
    chunks = 0
    windows = iter_chunks(from_block, to_block, chunk_size)
    # split-off sub-chunks of a rejected window, last one first
    pending: List[Tuple[int, int]] = []
    while True:
        if pending:
            start, end = pending.pop()
        else:
            window = next(windows, None)
            if window is None:
                break
            start, end = window
        try:
            batch = client.get_logs(address, topics, start, end)
        except RpcProtocolError as e:
            width = end - start + 1
            if _is_oversize(e) and width > min_chunk_size:
                half = max(min_chunk_size, width // 2)
                logger.warning("eth_getLogs rejected [%d,%d], splitting into %d-block chunks", start, end, half)
                pending.extend(reversed(list(iter_chunks(start, end, half))))
                continue
            raise
        chunks += 1
        all_logs.extend(RawLogEntry.from_rpc(log) for log in batch)
        logger.debug("scanned [%d,%d]: %d logs", start, end, len(batch))

    logger.info("Scanned %s blocks %d-%d in %d chunks: %d logs", address, from_block, to_block, chunks, len(all_logs))
    return all_logs
