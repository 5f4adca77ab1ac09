from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class StakeSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    staked: Decimal = Decimal(0)  # ether
    rank: Optional[int] = None


class BundleInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    bundle_index: int
    miner_tip: Optional[int] = None  # wei, None when the index carries no tip


class BundleIndex(BaseModel):
    """Bundle membership for one block. success=False means the index could not be read."""

    model_config = ConfigDict(frozen=True)

    success: bool
    bundles: Dict[str, BundleInfo] = Field(default_factory=dict)

    def get(self, tx_hash: str) -> Optional[BundleInfo]:
        return self.bundles.get(tx_hash.lower())


class BlockInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    timestamp: Optional[int] = None
    transaction_count: Optional[int] = None
    base_fee_per_gas: int = 0  # wei, 0 before London


class DecodedCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    contract_name: Optional[str] = None
    function_signature: Optional[str] = None
    arguments: Dict[str, Any] = Field(default_factory=dict)

    @property
    def parsed(self) -> bool:
        return self.function_signature is not None

    def to_text(self) -> Optional[str]:
        """Human readable calldata, one argument per line."""
        if not self.parsed:
            return None
        lines = [f"Function: {self.function_signature}"]
        for name, value in self.arguments.items():
            lines.append(f"  {name}: {value}")
        return "\n".join(lines)
