from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

PriorityType = Literal["slot", "stake", "fb-bundle", "priority-fee"]


class LabeledTransaction(BaseModel):
    """One row of a block's transaction view, with its priority label."""

    model_config = ConfigDict(frozen=True)

    position: int
    hash: str
    from_address: str
    to_address: str
    nonce: int
    priority_fee: Optional[Decimal] = None  # gwei
    type: PriorityType = "priority-fee"
    to_slot: Optional[int] = None
    bundle_index: Optional[int] = None
    sender_stake: Optional[Decimal] = None
    sender_rank: Optional[int] = None
