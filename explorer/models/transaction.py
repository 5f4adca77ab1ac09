from decimal import Decimal
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from explorer.models.registry import DecodedCall

PENDING_PUBLIC = "PendingPublic"
PENDING_PRIVATE = "PendingPrivate"
MINED = "Mined"
NOT_FOUND = "NotFound"


class TransactionNotFound(BaseModel):
    """No source knows the hash. Carries nothing but the hash."""

    model_config = ConfigDict(frozen=True)

    lifecycle_state: Literal["NotFound"] = NOT_FOUND
    hash: str

    @property
    def pending(self) -> bool:
        return False


class BaseTransactionRecord(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    hash: str
    from_address: str
    to_address: str
    nonce: int
    value: Decimal  # ether
    gas_limit: int
    gas_price: Decimal  # gwei
    input: str
    raw_input: Optional[str] = None  # set when `input` holds decoded calldata
    priority_fee: Optional[Decimal] = None  # gwei
    base_fee: Optional[Decimal] = None  # gwei
    via_private_relay: Optional[bool] = False
    pending: bool = True

    @model_validator(mode="after")
    def check_fee_split(self):
        if self.base_fee is not None:
            if self.priority_fee is None:
                raise ValueError("base_fee requires priority_fee")
            if self.priority_fee == self.gas_price:
                raise ValueError("base_fee must be absent when priority_fee equals gas_price")
        return self

    @property
    def submission_channel(self) -> str:
        return "private-relay" if self.via_private_relay else "unknown"


class PendingPublicTransaction(BaseTransactionRecord):
    lifecycle_state: Literal["PendingPublic"] = PENDING_PUBLIC

    @property
    def display_status(self) -> str:
        return "pending-public"


class PendingPrivateTransaction(BaseTransactionRecord):
    lifecycle_state: Literal["PendingPrivate"] = PENDING_PRIVATE
    via_private_relay: Optional[bool] = True

    @property
    def display_status(self) -> str:
        return "pending-private"


class MinedTransaction(BaseTransactionRecord):
    lifecycle_state: Literal["Mined"] = MINED

    block_number: int
    index: Optional[int] = None
    block_tx_count: Optional[int] = None
    timestamp: Optional[int] = None
    status: Optional[int] = None  # 1 success, 0 fail
    gas_used: Optional[int] = None
    gas_cost: Optional[Decimal] = None  # ether
    logs: Optional[List[Dict[str, Any]]] = None

    from_relay_producer: Optional[bool] = None
    bundle_index: Optional[int] = None
    miner_tip: Optional[Decimal] = Decimal(0)  # ether
    sender_stake: Optional[Decimal] = None  # ether
    sender_rank: Optional[int] = None
    to_slot: Optional[int] = None
    contract_name: Optional[str] = None
    decoded_call: Optional[DecodedCall] = None

    @property
    def submission_channel(self) -> str:
        if self.via_private_relay:
            return "private-relay"
        if self.bundle_index is not None:
            return "bundle"
        return "unknown"

    @property
    def display_status(self) -> str:
        # A mined record that could not be enriched still reads as pending
        if self.pending:
            return "pending-private" if self.via_private_relay else "pending-public"
        return "success" if self.status == 1 else "fail"

    @property
    def miner_reward(self) -> Optional[Decimal]:
        if self.gas_cost is None or self.miner_tip is None:
            return None
        return self.gas_cost + self.miner_tip


TransactionRecord = Annotated[
    Union[PendingPublicTransaction, PendingPrivateTransaction, MinedTransaction, TransactionNotFound],
    Field(discriminator="lifecycle_state"),
]
