"""
Fold decoded events into per-wallet statistics.

Merge policy per field kind:
  - running-total (ActivityEvent.value -> total_buys): keep the largest value seen.
    The event already carries the wallet's all-time count, so a replayed or
    out-of-order log can never lower it.
  - delta (SettlementEvent.value -> total_claims): add every occurrence.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, Optional, Set, Tuple

from chain_leaderboard.models import DecodedEvent, EventKind, ParticipantStats

logger = logging.getLogger(__name__)


def fold(existing: Optional[ParticipantStats], event: DecodedEvent) -> ParticipantStats:
    stats = existing if existing is not None else ParticipantStats(wallet=event.participant)

    if event.kind is EventKind.ACTIVITY:
        if event.value > stats.total_buys:
            return replace(stats, total_buys=event.value)
        return stats
    if event.kind is EventKind.SETTLEMENT:
        return replace(stats, total_claims=stats.total_claims + event.value)
    raise ValueError(f"unknown event kind: {event.kind!r}")


def aggregate(events: Iterable[DecodedEvent]) -> Dict[str, ParticipantStats]:
    """Fold events in (block, log index) order; exact re-deliveries count once."""
    stats: Dict[str, ParticipantStats] = {}
    seen: Set[Tuple[int, int, str]] = set()
    duplicates = 0

    for event in sorted(events, key=lambda e: e.position):
        key = (event.block_number, event.log_index, event.transaction_hash)
        if key in seen:
            duplicates += 1
            continue
        seen.add(key)
        stats[event.participant] = fold(stats.get(event.participant), event)

    if duplicates:
        logger.warning("Skipped %d duplicate log deliveries", duplicates)
    logger.info("Aggregated %d events into %d wallets", len(seen), len(stats))
    return stats
