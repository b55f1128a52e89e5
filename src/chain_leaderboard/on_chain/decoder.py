"""Decode raw logs into typed events for one known event signature."""

from dataclasses import dataclass
from typing import Any, Dict

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from eth_abi.grammar import parse as parse_type
from eth_utils import is_address

from chain_leaderboard.errors import DecodeError
from chain_leaderboard.models import DecodedEvent, EventKind, RawLogEntry
from chain_leaderboard.on_chain.abi import EventSignature, strip_0x


@dataclass(frozen=True)
class EventBinding:
    """Which decoded fields carry the participant and the folded value."""
    kind: EventKind
    signature: EventSignature
    participant_field: str
    value_field: str


def _to_bytes(h: str, what: str) -> bytes:
    try:
        return bytes.fromhex(strip_0x(h))
    except ValueError as e:
        raise DecodeError(f"{what} is not hex: {h!r}") from e


def decode_args(raw: RawLogEntry, signature: EventSignature) -> Dict[str, Any]:
    if not raw.topics or raw.topics[0] != signature.topic:
        got = raw.topics[0] if raw.topics else None
        raise DecodeError(f"topic0 {got} does not match {signature.canonical} ({signature.topic})")

    indexed = signature.indexed_inputs
    if len(raw.topics) != 1 + len(indexed):
        raise DecodeError(
            f"{signature.canonical} expects {1 + len(indexed)} topics, log has {len(raw.topics)}"
        )

    args: Dict[str, Any] = {}
    try:
        # topics[1..n]: indexed inputs in declared order
        for inp, topic in zip(indexed, raw.topics[1:]):
            topic_bytes = _to_bytes(topic, "topic")
            if len(topic_bytes) != 32:
                raise DecodeError(f"topic for {inp.name} is {len(topic_bytes)} bytes, expected 32")
            if inp.stored_in_topic:
                (args[inp.name],) = abi_decode([inp.type], topic_bytes)
            else:
                args[inp.name] = "0x" + topic_bytes.hex()

        # data: non-indexed inputs in declared order
        data_inputs = signature.data_inputs
        data_bytes = _to_bytes(raw.data, "data")
        types = [inp.type for inp in data_inputs]
        if not any(parse_type(t).is_dynamic for t in types):
            expected = sum(32 * _static_words(t) for t in types)
            if len(data_bytes) != expected:
                raise DecodeError(
                    f"{signature.canonical} data is {len(data_bytes)} bytes, expected {expected}"
                )
        if data_inputs:
            values = abi_decode(types, data_bytes)
            for inp, value in zip(data_inputs, values):
                args[inp.name] = value
    except DecodingError as e:
        raise DecodeError(f"cannot decode {signature.canonical} at {raw.position}: {e}") from e
    return args


def _static_words(type_str: str) -> int:
    """32-byte words a static type occupies in the data payload."""
    abi_type = parse_type(type_str)
    words = 1
    for dims in abi_type.arrlist or ():
        words *= dims[0]
    return words


def decode(raw: RawLogEntry, binding: EventBinding) -> DecodedEvent:
    args = decode_args(raw, binding.signature)

    participant = args.get(binding.participant_field)
    if not isinstance(participant, str) or not is_address(participant):
        raise DecodeError(
            f"{binding.signature.name}.{binding.participant_field} is not an address: {participant!r}"
        )
    value = args.get(binding.value_field)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"{binding.signature.name}.{binding.value_field} is not an integer: {value!r}")

    return DecodedEvent(
        kind=binding.kind,
        participant=participant.lower(),
        value=value,
        block_number=raw.block_number,
        log_index=raw.log_index,
        transaction_hash=raw.transaction_hash,
        args=args,
    )
