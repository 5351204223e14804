"""
Data models for the Flashbot SDK.

Request parameter models serialize to the relay's wire shape (camelCase keys,
fields in declaration order, unset optional fields omitted). Response models
validate the relay's JSON-RPC answers.
"""
import json
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from web3 import Web3

from .config import JSONRPC_VERSION, HintName, Method

_HEX_RE = re.compile(r"^0x[0-9a-fA-F]*$")


def to_hex_quantity(value: Union[int, str]) -> str:
    """
    Normalise a block number to a 0x-prefixed hex string.

    Args:
        value: Non-negative int or 0x-prefixed hex string

    Returns:
        Hex string, e.g. "0x10d4f"

    Raises:
        ValueError: If the value is negative or not valid hex
    """
    if isinstance(value, bool):
        raise ValueError("Block number must be an int or hex string, got bool")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"Block number must be non-negative, got {value}")
        return hex(value)
    if isinstance(value, str) and _HEX_RE.match(value) and len(value) > 2:
        return value
    raise ValueError(f"Expected a 0x-prefixed hex string or int, got {value!r}")


def to_hex_data(value: Union[bytes, str]) -> str:
    """Normalise raw bytes or a hex string to 0x-prefixed hex data."""
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(value)
    if isinstance(value, str) and _HEX_RE.match(value):
        return value
    raise ValueError(f"Expected bytes or a 0x-prefixed hex string, got {value!r}")


class WireModel(BaseModel):
    """Base for request parameter objects. Unknown keys are rejected."""
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    def to_wire(self) -> Dict[str, Any]:
        """Dump to the relay's JSON shape, omitting unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class UserStatsParams(WireModel):
    block_number: str = Field(..., alias="blockNumber")

    @field_validator("block_number", mode="before")
    @classmethod
    def normalise_block_number(cls, value):
        return to_hex_quantity(value)


class BundleStatsParams(WireModel):
    bundle_hash: str = Field(..., alias="bundleHash")
    block_number: str = Field(..., alias="blockNumber")

    @field_validator("bundle_hash", mode="before")
    @classmethod
    def normalise_bundle_hash(cls, value):
        return to_hex_data(value)

    @field_validator("block_number", mode="before")
    @classmethod
    def normalise_block_number(cls, value):
        return to_hex_quantity(value)


class CancelBundleParams(WireModel):
    tx_hash: str = Field(..., alias="txHash")

    @field_validator("tx_hash", mode="before")
    @classmethod
    def normalise_tx_hash(cls, value):
        return to_hex_data(value)


class RefundEntry(WireModel):
    address: str
    percent: int = Field(..., ge=0, le=100)


class Validity(WireModel):
    refund: Optional[List[RefundEntry]] = None


class Privacy(WireModel):
    hints: Optional[List[HintName]] = None
    builders: Optional[List[str]] = None


class PrivateTxPreferences(WireModel):
    fast: bool
    privacy: Optional[Privacy] = None
    validity: Optional[Validity] = None


class PrivateRawTransactionParams(WireModel):
    tx: str
    preferences: Optional[PrivateTxPreferences] = None

    @field_validator("tx", mode="before")
    @classmethod
    def normalise_tx(cls, value):
        return to_hex_data(value)


class PrivateTransactionParams(PrivateRawTransactionParams):
    max_block_number: Optional[str] = Field(None, alias="maxBlockNumber")

    @field_validator("max_block_number", mode="before")
    @classmethod
    def normalise_max_block_number(cls, value):
        return None if value is None else to_hex_quantity(value)


class CallBundleParams(WireModel):
    """Parameters for eth_callBundle (bundle simulation)."""
    txs: List[str] = Field(..., min_length=1)
    block_number: str = Field(..., alias="blockNumber")
    state_block_number: str = Field("latest", alias="stateBlockNumber")
    timestamp: Optional[int] = None

    @field_validator("txs", mode="before")
    @classmethod
    def normalise_txs(cls, value):
        return [to_hex_data(tx) for tx in value]

    @field_validator("block_number", mode="before")
    @classmethod
    def normalise_block_number(cls, value):
        return to_hex_quantity(value)

    @field_validator("state_block_number", mode="before")
    @classmethod
    def normalise_state_block_number(cls, value):
        return "latest" if value == "latest" else to_hex_quantity(value)


class SendBundleParams(WireModel):
    """Parameters for eth_sendBundle."""
    txs: List[str] = Field(..., min_length=1)
    block_number: str = Field(..., alias="blockNumber")
    min_timestamp: Optional[int] = Field(None, alias="minTimestamp")
    max_timestamp: Optional[int] = Field(None, alias="maxTimestamp")
    reverting_tx_hashes: Optional[List[str]] = Field(None, alias="revertingTxHashes")
    replacement_uuid: Optional[str] = Field(None, alias="replacementUuid")
    builders: Optional[List[str]] = None

    @field_validator("txs", mode="before")
    @classmethod
    def normalise_txs(cls, value):
        return [to_hex_data(tx) for tx in value]

    @field_validator("block_number", mode="before")
    @classmethod
    def normalise_block_number(cls, value):
        return to_hex_quantity(value)

    @model_validator(mode="after")
    def check_timestamps(self) -> "SendBundleParams":
        if (
            self.min_timestamp is not None
            and self.max_timestamp is not None
            and self.min_timestamp > self.max_timestamp
        ):
            raise ValueError("minTimestamp must not be greater than maxTimestamp")
        return self

    def to_call_params(
        self,
        state_block_number: Union[int, str] = "latest",
        timestamp: Optional[int] = None,
    ) -> CallBundleParams:
        """Derive the simulation parameters for this bundle."""
        return CallBundleParams(
            txs=self.txs,
            block_number=self.block_number,
            state_block_number=state_block_number,
            timestamp=timestamp,
        )


class RequestEnvelope(BaseModel):
    """JSON-RPC 2.0 request sent to the relay."""
    jsonrpc: str = JSONRPC_VERSION
    id: int
    method: Method
    params: List[Dict[str, Any]]

    def serialize(self) -> str:
        """
        Serialize to the exact string that is signed and posted.

        Keys keep declaration order and separators are compact, so the same
        envelope always produces the same bytes.
        """
        return json.dumps(
            self.model_dump(mode="json"),
            separators=(",", ":"),
            ensure_ascii=False,
        )


class RelayErrorDetail(BaseModel):
    code: Optional[int] = None
    message: str = ""


class RelayResponse(BaseModel):
    """
    Envelope of a relay answer.

    Either an error variant (``error`` object, legacy bare ``error`` string or
    top-level ``message``) or a success variant carrying ``result``.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[Union[int, str]] = None
    jsonrpc: Optional[str] = None
    result: Any = None
    error: Optional[RelayErrorDetail] = None
    message: Optional[str] = None

    @field_validator("error", mode="before")
    @classmethod
    def coerce_legacy_error(cls, value):
        if isinstance(value, str):
            return {"message": value}
        return value

    @property
    def is_error(self) -> bool:
        return self.error is not None or bool(self.message)

    def error_detail(self) -> Optional[RelayErrorDetail]:
        if self.error is not None:
            return self.error
        if self.message:
            return RelayErrorDetail(message=self.message)
        return None


class ResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class UserStats(ResultModel):
    is_high_priority: bool = Field(False, alias="isHighPriority")
    all_time_gas_simulated: Optional[str] = Field(None, alias="allTimeGasSimulated")
    all_time_validator_payments: Optional[str] = Field(None, alias="allTimeValidatorPayments")
    last_1d_gas_simulated: Optional[str] = Field(None, alias="last1dGasSimulated")
    last_1d_validator_payments: Optional[str] = Field(None, alias="last1dValidatorPayments")
    last_7d_gas_simulated: Optional[str] = Field(None, alias="last7dGasSimulated")
    last_7d_validator_payments: Optional[str] = Field(None, alias="last7dValidatorPayments")


class BundleStats(ResultModel):
    is_simulated: bool = Field(..., alias="isSimulated")
    is_high_priority: Optional[bool] = Field(None, alias="isHighPriority")
    received_at: Optional[str] = Field(None, alias="receivedAt")
    simulated_at: Optional[str] = Field(None, alias="simulatedAt")


class CallBundleTxResult(ResultModel):
    tx_hash: str = Field(..., alias="txHash")
    gas_used: int = Field(..., alias="gasUsed")
    gas_price: Optional[str] = Field(None, alias="gasPrice")
    gas_fees: Optional[str] = Field(None, alias="gasFees")
    from_address: Optional[str] = Field(None, alias="fromAddress")
    to_address: Optional[str] = Field(None, alias="toAddress")
    coinbase_diff: Optional[str] = Field(None, alias="coinbaseDiff")
    eth_sent_to_coinbase: Optional[str] = Field(None, alias="ethSentToCoinbase")
    value: Optional[str] = None
    error: Optional[str] = None
    revert: Optional[str] = None

    @property
    def reverted(self) -> bool:
        return bool(self.error or self.revert)


class CallBundleResult(ResultModel):
    results: List[CallBundleTxResult]
    coinbase_diff: Optional[str] = Field(None, alias="coinbaseDiff")
    gas_fees: Optional[str] = Field(None, alias="gasFees")
    eth_sent_to_coinbase: Optional[str] = Field(None, alias="ethSentToCoinbase")
    bundle_gas_price: Optional[str] = Field(None, alias="bundleGasPrice")
    total_gas_used: Optional[int] = Field(None, alias="totalGasUsed")
    state_block_number: Optional[int] = Field(None, alias="stateBlockNumber")
    bundle_hash: Optional[str] = Field(None, alias="bundleHash")

    @property
    def reverted(self) -> List[CallBundleTxResult]:
        """Transactions of the bundle that reverted during simulation."""
        return [tx for tx in self.results if tx.reverted]


class SendBundleResult(ResultModel):
    bundle_hash: str = Field(..., alias="bundleHash")
    smart: Optional[bool] = None


class InclusionStatus(str, Enum):
    SUCCESS = "success"
    PASSED = "passed"


class InclusionOutcome(BaseModel):
    """Terminal result of an inclusion wait."""
    model_config = ConfigDict(frozen=True)

    status: InclusionStatus
    block_number: int
    transactions: Tuple[str, ...] = ()

    @model_validator(mode="after")
    def check_consistency(self) -> "InclusionOutcome":
        if self.status is InclusionStatus.SUCCESS and not self.transactions:
            raise ValueError("A successful inclusion must list the matched transactions")
        if self.status is InclusionStatus.PASSED and self.transactions:
            raise ValueError("A passed inclusion cannot list matched transactions")
        return self

    @property
    def included(self) -> bool:
        return self.status is InclusionStatus.SUCCESS
