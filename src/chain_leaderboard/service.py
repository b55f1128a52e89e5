"""Build the leaderboard: scan -> decode -> aggregate -> enrich -> rank"""
import logging
from typing import List, Optional, Tuple

from chain_leaderboard.board.aggregator import aggregate
from chain_leaderboard.board.enricher import enrich
from chain_leaderboard.board.ranker import rank
from chain_leaderboard.config import Settings
from chain_leaderboard.errors import ConfigurationError
from chain_leaderboard.models import DecodedEvent, EventKind, Leaderboard
from chain_leaderboard.on_chain.abi import parse_event_signature, parse_function_signature
from chain_leaderboard.on_chain.decoder import EventBinding, decode
from chain_leaderboard.on_chain.rpc import RpcClient
from chain_leaderboard.on_chain.scanner import scan

logger = logging.getLogger(__name__)


class LeaderboardService:
    """Recomputes the leaderboard from chain history on every build() call"""

    def __init__(self, settings: Settings, client: Optional[RpcClient] = None):
        self.settings = settings
        self.client = client or RpcClient(
            settings.rpc_url,
            timeout_s=settings.rpc_timeout_s,
            max_retries=settings.rpc_max_retries,
            pool_size=settings.enrichment_workers,
        )

        self.activity = EventBinding(
            kind=EventKind.ACTIVITY,
            signature=parse_event_signature(settings.activity_event),
            participant_field=settings.activity_participant_field,
            value_field=settings.activity_value_field,
        )
        self.settlement = EventBinding(
            kind=EventKind.SETTLEMENT,
            signature=parse_event_signature(settings.settlement_event),
            participant_field=settings.settlement_participant_field,
            value_field=settings.settlement_value_field,
        )
        self.bonus_function = parse_function_signature(settings.enrichment_function)

        for binding in (self.activity, self.settlement):
            _check_binding(binding)
        if self.bonus_function.input_types != ("address",):
            raise ConfigurationError(
                f"{self.bonus_function.canonical} must take a single address argument"
            )

    def _sources(self) -> List[Tuple[str, int, EventBinding]]:
        sources = [(self.settings.contract_address, self.settings.deploy_block, self.activity)]
        if self.settings.claims_contract_address:
            sources.append(
                (self.settings.claims_contract_address, self.settings.settlement_deploy_block, self.settlement)
            )
        return sources

    def collect_events(self, to_block: int) -> List[DecodedEvent]:
        events: List[DecodedEvent] = []
        for address, from_block, binding in self._sources():
            logs = scan(
                self.client,
                address,
                [binding.signature.topic],
                from_block,
                to_block,
                self.settings.chunk_size,
                min_chunk_size=self.settings.min_chunk_size,
            )
            removed = 0
            for log in logs:
                if log.removed:
                    removed += 1
                    continue
                events.append(decode(log, binding))
            if removed:
                logger.warning("Ignored %d removed (reorged) %s logs", removed, binding.signature.name)
        return events

    def build(self) -> Leaderboard:
        latest_block = self.client.block_number()
        logger.info("Building leaderboard up to block %d", latest_block)

        events = self.collect_events(latest_block)
        stats = aggregate(events)
        stats, failures = enrich(
            self.client,
            stats,
            self.settings.contract_address,
            self.bonus_function,
            max_workers=self.settings.enrichment_workers,
        )
        rows = rank(stats, self.settings.unit_value, self.settings.row_cap)

        logger.info("Leaderboard built: %d rows from %d wallets", len(rows), len(stats))
        return Leaderboard(
            rows=rows,
            from_block=min(block for _, block, _ in self._sources()),
            to_block=latest_block,
            events_decoded=len(events),
            enrichment_failures=failures,
        )


def _check_binding(binding: EventBinding) -> None:
    names = {inp.name: inp for inp in binding.signature.inputs}
    participant = names.get(binding.participant_field)
    if participant is None or participant.type != "address":
        raise ConfigurationError(
            f"{binding.signature.name} has no address field {binding.participant_field!r}"
        )
    value = names.get(binding.value_field)
    if value is None or not value.type.startswith(("uint", "int")) or "[" in value.type:
        raise ConfigurationError(f"{binding.signature.name} has no integer field {binding.value_field!r}")
