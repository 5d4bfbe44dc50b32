"""
Test fixtures shared by the block-alert test suite.
"""

from __future__ import annotations

from typing import Any

import pytest

from blockalert.events import EventBus
from tests.helpers import XPUB, EventRecorder, FakeSleep, ManualClock


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def recorder(events: EventBus) -> EventRecorder:
    return EventRecorder(events)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def sample_transaction() -> dict[str, Any]:
    return {
        "blockHash": None,
        "confirmations": 0,
        "height": None,
        "transactionId": "a1" * 32,
        "outputs": [{"keyPath": "0/0", "scriptPubKey": "0014ab", "index": 0, "value": 10000}],
        "inputs": [],
        "timestamp": 1700000000,
        "balanceChange": 10000,
        "replaceable": True,
        "replacing": None,
        "replacedBy": None,
    }


@pytest.fixture
def sample_utxos() -> dict[str, Any]:
    return {
        "trackedSource": f"DERIVATIONSCHEME:{XPUB}",
        "derivationStrategy": XPUB,
        "currentHeight": 830000,
        "unconfirmed": {
            "utxOs": [
                {
                    "address": "bc1qunconfirmed000000000000000000000abcdef",
                    "value": 5000,
                    "confirmations": 0,
                    "transactionHash": "b2" * 32,
                    "index": 0,
                }
            ],
            "spentOutpoints": [],
        },
        "confirmed": {
            "utxOs": [
                {
                    "address": "bc1qconfirmed00000000000000000000000fedcba",
                    "value": 150000000,
                    "confirmations": 12,
                    "transactionHash": "c3" * 32,
                    "index": 1,
                }
            ],
            "spentOutpoints": [],
        },
        "spentUnconfirmed": [],
    }


@pytest.fixture
def new_transaction_message() -> dict[str, Any]:
    return {
        "type": "newtransaction",
        "eventId": 3,
        "data": {
            "blockId": None,
            "trackedSource": f"DERIVATIONSCHEME:{XPUB}",
            "derivationStrategy": XPUB,
            "transactionData": {
                "confirmations": 0,
                "blockId": None,
                "transactionHash": "a1" * 32,
                "transaction": "0200000001",
                "height": None,
                "timestamp": 1700000000,
            },
            "inputs": [],
            "outputs": [],
            "cryptoCode": "BTC",
            "replacing": [],
        },
    }
