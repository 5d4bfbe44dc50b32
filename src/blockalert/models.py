"""
Data models for NBXplorer payloads and derived notification values.

NBXplorer speaks camelCase JSON; models accept either the wire alias or
the Python field name and silently drop keys they do not know about.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NBXModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class TransactionType(str, Enum):
    RECEIVED = "Received"
    SENT = "Sent"
    UNKNOWN = "Unknown"


class TransactionStatus(str, Enum):
    CONFIRMED = "Confirmed"
    UNCONFIRMED = "Unconfirmed"


class ScanStatus(str, Enum):
    QUEUED = "Queued"
    PENDING = "Pending"
    COMPLETE = "Complete"
    ERROR = "Error"


class TransactionData(NBXModel):
    """Transaction detail as returned by /derivations/{strategy}/transactions/{txid}."""

    transaction_id: str
    confirmations: int = 0
    balance_change: int = 0
    timestamp: int = 0
    block_hash: str | None = None
    height: int | None = None
    inputs: list[dict[str, Any]] = Field(default_factory=list)
    outputs: list[dict[str, Any]] = Field(default_factory=list)
    replaceable: bool = False
    replacing: str | None = None
    replaced_by: str | None = None


class TransactionAnalysis(NBXModel):
    xpub: str
    type: TransactionType
    amount: float
    status: TransactionStatus
    txid: str
    timestamp: int


class Utxo(NBXModel):
    address: str = ""
    value: int = 0
    confirmations: int = 0
    transaction_hash: str | None = None
    index: int | None = None
    key_path: str | None = None
    timestamp: int | None = None


class UtxoSet(NBXModel):
    utxos: list[Utxo] = Field(default_factory=list, alias="utxOs")
    spent_outpoints: list[Any] = Field(default_factory=list)


class UtxoSnapshot(NBXModel):
    """Current UTXO set for the tracked derivation scheme."""

    tracked_source: str | None = None
    derivation_strategy: str
    current_height: int = 0
    unconfirmed: UtxoSet = Field(default_factory=UtxoSet)
    confirmed: UtxoSet = Field(default_factory=UtxoSet)
    spent_unconfirmed: list[Any] = Field(default_factory=list)

    def all_utxos(self) -> list[Utxo]:
        return [*self.unconfirmed.utxos, *self.confirmed.utxos]


class ScanProgressDetail(NBXModel):
    overall_progress: float = 0.0
    remaining_seconds: int | None = None


class ScanProgress(NBXModel):
    status: ScanStatus
    progress: ScanProgressDetail | None = None
    error: str | None = None


class SubscribeData(NBXModel):
    crypto_code: str
    derivation_schemes: list[str]


class SubscribeMessage(NBXModel):
    type: Literal["subscribetransaction"] = "subscribetransaction"
    data: SubscribeData


class NewTransactionPayload(NBXModel):
    transaction_hash: str
    confirmations: int = 0
    timestamp: int | None = None


class NewTransactionData(NBXModel):
    derivation_strategy: str
    transaction_data: NewTransactionPayload
    crypto_code: str | None = None


class NewTransactionMessage(NBXModel):
    type: Literal["newtransaction"]
    event_id: int | None = None
    data: NewTransactionData
