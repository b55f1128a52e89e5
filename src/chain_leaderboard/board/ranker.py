"""Score and order wallets into leaderboard rows."""

from decimal import Decimal
from typing import List, Mapping

from chain_leaderboard.models import LeaderboardRow, ParticipantStats

HUNDRED = Decimal(100)


def score(stats: ParticipantStats, unit_value: Decimal) -> Decimal:
    # total_buys x $/buy x (1 + bonus%)
    return Decimal(stats.total_buys) * unit_value * (1 + Decimal(stats.bonus_percent) / HUNDRED)


def rank(stats: Mapping[str, ParticipantStats], unit_value: Decimal, row_cap: int) -> List[LeaderboardRow]:
    if row_cap < 0:
        raise ValueError(f"row_cap must be >= 0, got {row_cap}")
    unit_value = Decimal(str(unit_value))

    rows = [
        LeaderboardRow(
            wallet=s.wallet,
            total_buys=s.total_buys,
            total_claims=s.total_claims,
            bonus_percent=s.bonus_percent,
            bonus_value_usd=score(s, unit_value),
        )
        for s in stats.values()
        if s.total_buys or s.total_claims
    ]

    # buys desc, then bonus desc, then wallet asc
    rows.sort(key=lambda r: (-r.total_buys, -r.bonus_percent, r.wallet))
    return rows[:row_cap]
