from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from explorer.models.transaction import MinedTransaction


class AccountOverview(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str
    sender_stake: Optional[Decimal] = None  # ether
    staker_rank: Optional[int] = None
    slot_delegate: Optional[int] = None
    tx_count: Optional[int] = None
    transactions: List[MinedTransaction] = Field(default_factory=list)
