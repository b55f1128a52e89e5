"""
Human-readable ABI fragments:
  - "event Buy(address indexed user, uint256 ethPaid, ...)"  -> EventSignature
  - "function bonusPercent(address user) view returns (uint16)" -> FunctionSignature
Only elementary and array types are supported (no tuples).
"""

import re
from dataclasses import dataclass
from typing import Any, List, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError, ParseError
from eth_abi.grammar import normalize as normalize_type
from eth_abi.grammar import parse as parse_type
from eth_utils import keccak

from chain_leaderboard.errors import ConfigurationError, DecodeError

_FRAGMENT_RE = re.compile(r"^\s*(?:event|function)?\s*([A-Za-z_]\w*)\s*\(([^()]*)\)\s*(.*)$")
_RETURNS_RE = re.compile(r"returns\s*\(([^()]*)\)")
KNOWN_BASES = ("address", "bool", "bytes", "string", "int", "uint", "fixed", "ufixed")


@dataclass(frozen=True)
class EventInput:
    name: str
    type: str
    indexed: bool = False

    @property
    def stored_in_topic(self) -> bool:
        """Elementary indexed values sit in the topic as-is; everything else is hashed."""
        abi_type = parse_type(self.type)
        return not (abi_type.is_array or abi_type.is_dynamic)


@dataclass(frozen=True)
class EventSignature:
    name: str
    inputs: Tuple[EventInput, ...]

    @property
    def canonical(self) -> str:
        return f"{self.name}({','.join(i.type for i in self.inputs)})"

    @property
    def topic(self) -> str:
        return "0x" + keccak(text=self.canonical).hex()

    @property
    def indexed_inputs(self) -> List[EventInput]:
        return [i for i in self.inputs if i.indexed]

    @property
    def data_inputs(self) -> List[EventInput]:
        return [i for i in self.inputs if not i.indexed]


@dataclass(frozen=True)
class FunctionSignature:
    name: str
    input_types: Tuple[str, ...]
    output_types: Tuple[str, ...]

    @property
    def canonical(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> bytes:
        return keccak(text=self.canonical)[:4]

    def encode_call(self, *args: Any) -> str:
        return "0x" + (self.selector + abi_encode(list(self.input_types), list(args))).hex()

    def decode_result(self, result_hex: str) -> Tuple[Any, ...]:
        try:
            raw = bytes.fromhex(strip_0x(result_hex))
            return tuple(abi_decode(list(self.output_types), raw))
        except (DecodingError, ValueError, TypeError) as e:
            raise DecodeError(f"{self.canonical} returned {result_hex!r}: {e}") from e


def strip_0x(h: str) -> str:
    return h[2:] if h.startswith(("0x", "0X")) else h


def _check_type(type_str: str, fragment: str) -> str:
    try:
        canonical = normalize_type(type_str)
        abi_type = parse_type(canonical)
        abi_type.validate()
    except (ParseError, ValueError) as e:
        raise ConfigurationError(f"unsupported ABI type {type_str!r} in {fragment!r}: {e}") from e
    if getattr(abi_type, "base", None) not in KNOWN_BASES:
        raise ConfigurationError(f"unknown ABI type {type_str!r} in {fragment!r}")
    return canonical


def _split_params(params: str) -> List[List[str]]:
    params = params.strip()
    if not params:
        return []
    return [p.split() for p in params.split(",")]


def _match(fragment: str):
    m = _FRAGMENT_RE.match(fragment or "")
    if not m:
        raise ConfigurationError(f"cannot parse ABI fragment {fragment!r} (tuple types are not supported)")
    return m


def parse_event_signature(fragment: str) -> EventSignature:
    m = _match(fragment)
    inputs: List[EventInput] = []
    for position, tokens in enumerate(_split_params(m.group(2))):
        if not tokens:
            raise ConfigurationError(f"empty parameter in {fragment!r}")
        type_str = _check_type(tokens[0], fragment)
        rest = tokens[1:]
        indexed = "indexed" in rest
        names = [t for t in rest if t != "indexed"]
        inputs.append(EventInput(name=names[-1] if names else f"arg{position}", type=type_str, indexed=indexed))

    if sum(1 for i in inputs if i.indexed) > 3:
        raise ConfigurationError(f"more than three indexed inputs in {fragment!r}")
    return EventSignature(name=m.group(1), inputs=tuple(inputs))


def parse_function_signature(fragment: str) -> FunctionSignature:
    m = _match(fragment)
    input_types = tuple(_check_type(tokens[0], fragment) for tokens in _split_params(m.group(2)))

    returns = _RETURNS_RE.search(m.group(3))
    if not returns:
        raise ConfigurationError(f"function fragment {fragment!r} declares no return types")
    output_types = tuple(_check_type(tokens[0], fragment) for tokens in _split_params(returns.group(1)))
    if not output_types:
        raise ConfigurationError(f"function fragment {fragment!r} declares no return types")
    return FunctionSignature(name=m.group(1), input_types=input_types, output_types=output_types)

