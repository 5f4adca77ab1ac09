import json
from typing import Any, Dict

from explorer.classifier import label_text, priority_category, row_color
from explorer.models.account import AccountOverview
from explorer.models.labeled_transaction import LabeledTransaction
from explorer.models.transaction import MinedTransaction, TransactionNotFound


def record_to_dict(record) -> Dict[str, Any]:
    """JSON-ready dict of a record, including its derived display fields."""
    data = record.model_dump(mode="json")
    if isinstance(record, TransactionNotFound):
        return data
    data["display_status"] = record.display_status
    data["submission_channel"] = record.submission_channel
    if isinstance(record, MinedTransaction):
        miner_reward = record.miner_reward
        data["miner_reward"] = str(miner_reward) if miner_reward is not None else None
    return data


def account_to_dict(account: AccountOverview) -> Dict[str, Any]:
    data = account.model_dump(mode="json", exclude={"transactions"})
    data["transactions"] = [record_to_dict(tx) for tx in account.transactions]
    return data


def to_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2)


def labeled_to_dict(labeled: LabeledTransaction) -> Dict[str, Any]:
    data = labeled.model_dump(mode="json")
    data["category"] = priority_category(labeled)
    data["row_color"] = row_color(labeled)
    data["label"] = label_text(labeled.type)
    return data
