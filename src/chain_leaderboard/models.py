"""Records passed between the scan, aggregation and ranking stages"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from chain_leaderboard.errors import DecodeError


def hex_to_int(h: Optional[str]) -> int:
    if not h or h == "0x":
        return 0
    return int(h, 16)


def format_decimal(value: Decimal) -> str:
    """Plain (non-exponent) decimal string without trailing zeros"""
    text = format(value.normalize(), "f")
    return text if text != "-0" else "0"


class EventKind(str, Enum):
    ACTIVITY = "ActivityEvent"
    SETTLEMENT = "SettlementEvent"


@dataclass(frozen=True)
class RawLogEntry:
    """One log object as returned by eth_getLogs"""
    address: str
    topics: Tuple[str, ...]
    data: str
    block_number: int
    log_index: int
    transaction_hash: str = ""
    removed: bool = False

    @property
    def position(self) -> Tuple[int, int]:
        return self.block_number, self.log_index

    @classmethod
    def from_rpc(cls, log: Mapping[str, Any]) -> "RawLogEntry":
        try:
            return cls(
                address=str(log.get("address") or "").lower(),
                topics=tuple(str(t).lower() for t in (log.get("topics") or [])),
                data=str(log.get("data") or "0x"),
                block_number=int(log["blockNumber"], 16),
                log_index=int(log["logIndex"], 16),
                transaction_hash=str(log.get("transactionHash") or "").lower(),
                removed=bool(log.get("removed", False)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"malformed log entry {dict(log)!r}: {e}") from e


@dataclass(frozen=True)
class DecodedEvent:
    kind: EventKind
    participant: str
    value: int
    block_number: int
    log_index: int
    transaction_hash: str = ""
    args: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def position(self) -> Tuple[int, int]:
        return self.block_number, self.log_index


@dataclass(frozen=True)
class ParticipantStats:
    """Per-wallet aggregate for a single build"""
    wallet: str
    total_buys: int = 0  # running total: max seen
    total_claims: int = 0  # delta: summed
    bonus_percent: int = 0  # enrichment, read live


@dataclass(frozen=True)
class LeaderboardRow:
    wallet: str
    total_buys: int
    total_claims: int
    bonus_percent: int
    bonus_value_usd: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wallet": self.wallet,
            "totalBuys": self.total_buys,
            "totalClaims": self.total_claims,
            "bonusPercent": self.bonus_percent,
            "bonusValueUsd": format_decimal(self.bonus_value_usd),
        }


@dataclass(frozen=True)
class Leaderboard:
    """Ordered rows plus what the build covered"""
    rows: List[LeaderboardRow]
    from_block: int
    to_block: int
    events_decoded: int
    enrichment_failures: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rows": [row.to_dict() for row in self.rows],
            "meta": {
                "fromBlock": self.from_block,
                "toBlock": self.to_block,
                "eventsDecoded": self.events_decoded,
                "enrichmentFailures": list(self.enrichment_failures),
            },
        }
