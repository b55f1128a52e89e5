from chain_leaderboard.board.aggregator import aggregate, fold
from chain_leaderboard.models import DecodedEvent, EventKind, ParticipantStats

from conftest import ALICE, BOB


def activity(wallet, total, block, log_index=0, tx=None):
    return DecodedEvent(EventKind.ACTIVITY, wallet, total, block, log_index, tx or f"0x{block:x}{log_index:x}")


def settlement(wallet, amount, block, log_index=0, tx=None):
    return DecodedEvent(EventKind.SETTLEMENT, wallet, amount, block, log_index, tx or f"0x{block:x}{log_index:x}")


def test_fold_starts_from_zero():
    stats = fold(None, activity(ALICE, 4, block=1))
    assert stats == ParticipantStats(wallet=ALICE, total_buys=4, total_claims=0, bonus_percent=0)


def test_running_total_keeps_max_seen():
    events = [activity(ALICE, total, block=i) for i, total in enumerate([3, 7, 5, 10])]
    assert aggregate(events)[ALICE].total_buys == 10


def test_running_total_never_decreases():
    stats = None
    seen = []
    for i, total in enumerate([3, 7, 5, 10, 2]):
        stats = fold(stats, activity(ALICE, total, block=i))
        seen.append(stats.total_buys)
    assert seen == [3, 7, 7, 10, 10]


def test_delta_field_is_summed():
    events = [settlement(ALICE, amount, block=i) for i, amount in enumerate([2, 5, 1])]
    assert aggregate(events)[ALICE].total_claims == 8


def test_fields_merge_independently():
    events = [
        activity(ALICE, 1, block=1),
        settlement(ALICE, 4, block=2),
        activity(ALICE, 2, block=3),
        settlement(BOB, 6, block=3, log_index=1),
    ]
    result = aggregate(events)
    assert result[ALICE] == ParticipantStats(ALICE, total_buys=2, total_claims=4)
    assert result[BOB] == ParticipantStats(BOB, total_buys=0, total_claims=6)


def test_events_are_folded_in_chain_order():
    events = [activity(ALICE, 9, block=20), activity(ALICE, 4, block=5), settlement(ALICE, 1, block=7)]
    assert aggregate(events)[ALICE].total_buys == 9


def test_replayed_log_counts_once():
    claim = settlement(ALICE, 5, block=3, log_index=2, tx="0xfeed")
    result = aggregate([claim, claim, activity(ALICE, 1, block=1)])
    assert result[ALICE].total_claims == 5


def test_empty_stream():
    assert aggregate([]) == {}
