import pytest

from chain_leaderboard.errors import ConfigurationError, DecodeError
from chain_leaderboard.on_chain.abi import parse_event_signature, parse_function_signature

TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


def test_event_signature_canonical_form_and_topic():
    sig = parse_event_signature("event Transfer(address indexed from, address indexed to, uint256 value)")
    assert sig.name == "Transfer"
    assert sig.canonical == "Transfer(address,address,uint256)"
    assert sig.topic == TRANSFER_TOPIC
    assert [i.name for i in sig.indexed_inputs] == ["from", "to"]
    assert [i.name for i in sig.data_inputs] == ["value"]


def test_event_prefix_is_optional_and_unnamed_inputs_get_positional_names():
    sig = parse_event_signature("Transfer(address indexed, address indexed, uint)")
    assert sig.topic == TRANSFER_TOPIC  # uint normalizes to uint256
    assert [i.name for i in sig.inputs] == ["arg0", "arg1", "arg2"]


def test_buy_event_layout():
    sig = parse_event_signature(
        "event Buy(address indexed user, uint256 ethPaid, uint64 userTotalBuys, uint32 buysInCurrentWindow)"
    )
    assert sig.canonical == "Buy(address,uint256,uint64,uint32)"
    assert [(i.name, i.indexed) for i in sig.inputs] == [
        ("user", True), ("ethPaid", False), ("userTotalBuys", False), ("buysInCurrentWindow", False),
    ]


@pytest.mark.parametrize("fragment", [
    "event Bad(uint7 x)",
    "event Bad(notatype x)",
    "event Tuple((uint256,address) pair)",
    "event Many(uint8 indexed a, uint8 indexed b, uint8 indexed c, uint8 indexed d)",
    "not a signature",
])
def test_invalid_event_fragments_are_configuration_errors(fragment):
    with pytest.raises(ConfigurationError):
        parse_event_signature(fragment)


def test_function_selector_and_call_encoding():
    fn = parse_function_signature("function balanceOf(address owner) view returns (uint256)")
    assert fn.canonical == "balanceOf(address)"
    assert fn.selector.hex() == "70a08231"
    data = fn.encode_call("0x" + "ab" * 20)
    assert data == "0x70a08231" + "0" * 24 + "ab" * 20


def test_function_result_decoding():
    fn = parse_function_signature("function bonusPercent(address user) view returns (uint16)")
    assert fn.output_types == ("uint16",)
    assert fn.decode_result("0x" + "0" * 63 + "5") == (5,)


@pytest.mark.parametrize("result", ["0x", "0x1234", "0xzz"])
def test_undecodable_function_result(result):
    fn = parse_function_signature("function bonusPercent(address user) view returns (uint16)")
    with pytest.raises(DecodeError):
        fn.decode_result(result)


def test_function_without_returns_is_rejected():
    with pytest.raises(ConfigurationError):
        parse_function_signature("function buy(bytes pohSignature) payable")
