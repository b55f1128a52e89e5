import logging
import threading

import pytest
from eth_abi import encode

from chain_leaderboard import variables
from chain_leaderboard.config import load_settings
from chain_leaderboard.errors import RpcProtocolError, RpcTransportError
from chain_leaderboard.on_chain.abi import parse_event_signature

# Enable visible logs when running tests
logging.basicConfig(level=logging.INFO)

BUY = parse_event_signature(variables.ACTIVITY_EVENT)
CLAIM = parse_event_signature(variables.SETTLEMENT_EVENT)

BUY_CONTRACT = "0x0e153774004835dcf78d7f8ae32bd00cf1743a7a"
CLAIM_CONTRACT = "0xea84ff406e2d4cf61015bd7bbc313050ff1bd81d"

ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20


def address_topic(addr):
    return "0x" + "0" * 24 + addr[2:].lower()


def _log(address, topics, data, block, log_index, tx):
    return {
        "address": address,
        "topics": topics,
        "data": "0x" + data.hex(),
        "blockNumber": hex(block),
        "logIndex": hex(log_index),
        "transactionHash": tx or "0x%064x" % (block * 1000 + log_index),
        "removed": False,
    }


def buy_log(user, total_buys, block, log_index=0, eth_paid=10**15, window=1, tx=None):
    data = encode(["uint256", "uint64", "uint32"], [eth_paid, total_buys, window])
    return _log(BUY_CONTRACT, [BUY.topic, address_topic(user)], data, block, log_index, tx)


def claim_log(user, allocations, block, log_index=0, tokens_paid=0, tx=None):
    data = encode(["uint256", "uint256"], [allocations, tokens_paid])
    return _log(CLAIM_CONTRACT, [CLAIM.topic, address_topic(user)], data, block, log_index, tx)


class FakeNode:
    """In-memory stand-in for RpcClient answering from a fixed list of logs."""

    def __init__(self, head, logs=(), bonuses=None, failing_wallets=(), max_logs=None):
        self.head = head
        self.logs = list(logs)
        self.bonuses = dict(bonuses or {})
        self.failing_wallets = set(failing_wallets)
        self.max_logs = max_logs
        self.get_logs_calls = []
        self.eth_calls = []
        self._lock = threading.Lock()

    def block_number(self):
        return self.head

    def chain_id(self):
        return 59144

    def get_logs(self, address, topics, from_block, to_block):
        self.get_logs_calls.append((address, from_block, to_block))
        matched = [
            log for log in self.logs
            if log["address"] == address.lower()
            and (not topics or log["topics"][0] in topics)
            and from_block <= int(log["blockNumber"], 16) <= to_block
        ]
        if self.max_logs is not None and len(matched) > self.max_logs:
            raise RpcProtocolError("eth_getLogs", "query returned more than 10000 results")
        return sorted(matched, key=lambda log: (int(log["blockNumber"], 16), int(log["logIndex"], 16)))

    def eth_call(self, to, data, block="latest"):
        wallet = "0x" + data[-40:]
        with self._lock:
            self.eth_calls.append((to, wallet))
        if wallet in self.failing_wallets:
            raise RpcTransportError("eth_call", "read timed out")
        return "0x" + encode(["uint16"], [self.bonuses.get(wallet, 0)]).hex()


@pytest.fixture
def settings(monkeypatch, tmp_path):
    """Settings independent of the caller's environment and any .env file."""
    monkeypatch.chdir(tmp_path)
    return load_settings(
        rpc_url="http://node.invalid",
        contract_address=BUY_CONTRACT,
        chunk_size=1_000,
        deploy_block=0,
        unit_value="0.10",
        row_cap=100,
        enrichment_workers=4,
    )


@pytest.fixture
def settings_with_claims(settings):
    return settings.model_copy(update={"claims_contract_address": CLAIM_CONTRACT})
