from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from constants.display_constants import LABELS_TO_UI, ROW_COLOR_BY_PRIORITY
from explorer.models.labeled_transaction import LabeledTransaction
from explorer.models.transaction import MinedTransaction

# Tiers of priority_rank_key
_SLOT_TIER, _STAKE_TIER, _BUNDLE_TIER, _FEE_TIER = range(4)


def label_transaction(record: MinedTransaction, position: int, min_sender_stake: Decimal) -> LabeledTransaction:
    """
    Tags an enriched record with how it earned its place in the block:
    sent to a delegated slot, sent by a ranked staker holding at least
    min_sender_stake, part of a bundle, or plain priority fee.
    """
    if record.to_slot is not None:
        tx_type = "slot"
    elif record.sender_rank is not None and record.sender_stake is not None and record.sender_stake >= min_sender_stake:
        tx_type = "stake"
    elif record.bundle_index is not None:
        tx_type = "fb-bundle"
    else:
        tx_type = "priority-fee"

    return LabeledTransaction(
        position=position,
        hash=record.hash,
        from_address=record.from_address,
        to_address=record.to_address,
        nonce=record.nonce,
        priority_fee=record.priority_fee,
        type=tx_type,
        to_slot=record.to_slot,
        bundle_index=record.bundle_index,
        sender_stake=record.sender_stake,
        sender_rank=record.sender_rank,
    )


def label_transactions(records: Iterable[MinedTransaction], min_sender_stake: Decimal) -> List[LabeledTransaction]:
    """Labels a block's records; position is the index in the block when known."""
    return [
        label_transaction(record, record.index if record.index is not None else i, min_sender_stake)
        for i, record in enumerate(records)
    ]


def priority_category(labeled: LabeledTransaction) -> str:
    if labeled.type in ("slot", "stake"):
        return labeled.type
    if labeled.type == "fb-bundle" and labeled.bundle_index is not None:
        # Adjacent bundles alternate colors
        return f"bundle-{labeled.bundle_index % 2}"
    return "priority-fee"


def row_color(labeled: LabeledTransaction) -> str:
    return ROW_COLOR_BY_PRIORITY[priority_category(labeled)]


def label_text(tx_type: str) -> str:
    return LABELS_TO_UI.get(tx_type, LABELS_TO_UI["priority-fee"])


def priority_rank_key(labeled: LabeledTransaction) -> Tuple[int, Any, int]:
    """
    Orders a block view by how a transaction got in: slots by slot id, then
    stakers by stake (largest first), then bundles by index, then the rest by
    priority fee (largest first). Ties keep block position order.
    """
    if labeled.type == "slot" and labeled.to_slot is not None:
        return _SLOT_TIER, labeled.to_slot, labeled.position
    if labeled.type == "stake":
        return _STAKE_TIER, -(labeled.sender_stake or Decimal(0)), labeled.position
    if labeled.type == "fb-bundle" and labeled.bundle_index is not None:
        return _BUNDLE_TIER, labeled.bundle_index, labeled.position
    return _FEE_TIER, -(labeled.priority_fee or Decimal(0)), labeled.position


SORT_COLUMNS: Dict[str, Callable[[LabeledTransaction], Optional[Any]]] = {
    "position": lambda tx: tx.position,
    "hash": lambda tx: tx.hash.lower(),
    "from": lambda tx: tx.from_address.lower(),
    "to": lambda tx: tx.to_address.lower(),
    "nonce": lambda tx: tx.nonce,
    "priority_fee": lambda tx: tx.priority_fee,
    "type": lambda tx: tx.type,
    "to_slot": lambda tx: tx.to_slot,
    "bundle_index": lambda tx: tx.bundle_index,
    "sender_stake": lambda tx: tx.sender_stake,
    "priority": priority_rank_key,
}


def sort_transactions(
    labeled: Iterable[LabeledTransaction],
    order_by: str = "position",
    descending: bool = False,
) -> List[LabeledTransaction]:
    """
    Sorts a block view by one column. Rows without a value for the column go
    last whichever the direction.
    """
    if order_by not in SORT_COLUMNS:
        raise ValueError(f"Unknown sort column: {order_by}. Expected one of {sorted(SORT_COLUMNS)}")
    key = SORT_COLUMNS[order_by]

    labeled = list(labeled)
    present = [tx for tx in labeled if key(tx) is not None]
    missing = [tx for tx in labeled if key(tx) is None]
    return sorted(present, key=key, reverse=descending) + missing
