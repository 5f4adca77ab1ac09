# MIT License
#
# Copyright (c) 2018 Evgeny Medvedev, evge.medvedev@gmail.com
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in all
# copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.
#
# Modified for the explorer: maps the three primary sources (public request
# object, receipt, relay record) and explorer account history onto the
# lifecycle variants of the transaction record.

from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from explorer.models.registry import BlockInfo
from explorer.models.transaction import MinedTransaction, PendingPrivateTransaction, PendingPublicTransaction
from utils.formatter_utils import parse_quantity, to_display_address, wei_to_ether, wei_to_gwei
from utils.logger_utils import get_logger

logger = get_logger("Transaction Mapper")


def derive_fees(gas_price_wei: int, priority_fee_wei: Optional[int]) -> Tuple[Optional[Decimal], Optional[Decimal]]:
    """
    Splits a gas price into (priority fee, base fee), both in gwei.
    Without a priority fee there is no split. The base fee only exists when
    the two differ.
    """
    if priority_fee_wei is None:
        return None, None
    priority_fee = wei_to_gwei(priority_fee_wei)
    gas_price = wei_to_gwei(gas_price_wei)
    if priority_fee == gas_price:
        return priority_fee, None
    return priority_fee, gas_price - priority_fee


def get_field(json_dict: Dict[str, Any], key: str) -> Any:
    # The relay answers with lower-cased keys (e.g. "maxpriorityfeepergas")
    if key in json_dict:
        return json_dict[key]
    return json_dict.get(key.lower())


class TransactionMapper(object):
    @staticmethod
    def _base_fields(json_dict: Dict[str, Any]) -> Dict[str, Any]:
        gas_price_wei = parse_quantity(get_field(json_dict, "gasPrice")) or 0
        priority_fee, base_fee = derive_fees(gas_price_wei, parse_quantity(get_field(json_dict, "maxPriorityFeePerGas")))
        return dict(
            hash=get_field(json_dict, "hash"),
            from_address=to_display_address(get_field(json_dict, "from")),
            to_address=to_display_address(get_field(json_dict, "to")),
            nonce=parse_quantity(get_field(json_dict, "nonce")),
            value=wei_to_ether(parse_quantity(get_field(json_dict, "value")) or 0),
            gas_limit=parse_quantity(get_field(json_dict, "gas")),
            gas_price=wei_to_gwei(gas_price_wei),
            input=get_field(json_dict, "input") or "0x",
            priority_fee=priority_fee,
            base_fee=base_fee,
        )

    def json_dict_to_pending_public(self, request: Dict[str, Any], via_private_relay: bool = False) -> PendingPublicTransaction:
        return PendingPublicTransaction(
            **self._base_fields(request),
            via_private_relay=via_private_relay,
            pending=True,
        )

    def relay_dict_to_pending_private(self, relay_record: Dict[str, Any]) -> PendingPrivateTransaction:
        return PendingPrivateTransaction(
            **self._base_fields(relay_record),
            via_private_relay=True,
            pending=True,
        )

    def json_dicts_to_mined(
        self,
        request: Dict[str, Any],
        receipt: Dict[str, Any],
        via_private_relay: bool = False,
    ) -> MinedTransaction:
        """
        Pre-enrichment mined record: request object plus receipt, still pending
        until the enrichment step settles.
        """
        return MinedTransaction(
            **self._base_fields(request),
            via_private_relay=via_private_relay,
            pending=True,
            block_number=parse_quantity(request.get("blockNumber") or receipt.get("blockNumber")),
            index=parse_quantity(request.get("transactionIndex")),
            gas_used=parse_quantity(receipt.get("gasUsed")),
            status=parse_quantity(receipt.get("status")),
            logs=receipt.get("logs"),
        )

    def explorer_dict_to_mined(
        self,
        json_dict: Dict[str, Any],
        block_info: Optional[BlockInfo] = None,
        from_relay_producer: Optional[bool] = None,
        via_private_relay: Optional[bool] = None,
    ) -> MinedTransaction:
        """
        Account history entry (decimal strings) to a mined record. The explorer only
        reports the effective gas price, so the priority fee is recovered from the
        block's base fee when block metadata is known.
        """
        gas_price_wei = parse_quantity(json_dict.get("gasPrice")) or 0
        gas_used = parse_quantity(json_dict.get("gasUsed"))

        priority_fee, base_fee = None, None
        if block_info is not None:
            if block_info.base_fee_per_gas > gas_price_wei:
                logger.warning(f"Base fee above gas price for {json_dict.get('hash')}, skipping fee split")
            else:
                priority_fee, base_fee = derive_fees(gas_price_wei, gas_price_wei - block_info.base_fee_per_gas)

        return MinedTransaction(
            hash=json_dict.get("hash"),
            from_address=to_display_address(json_dict.get("from")),
            to_address=to_display_address(json_dict.get("to")),
            nonce=parse_quantity(json_dict.get("nonce")),
            value=wei_to_ether(parse_quantity(json_dict.get("value")) or 0),
            gas_limit=parse_quantity(json_dict.get("gas")),
            gas_price=wei_to_gwei(gas_price_wei),
            input=json_dict.get("input") or "0x",
            priority_fee=priority_fee,
            base_fee=base_fee,
            via_private_relay=via_private_relay,
            pending=False,
            block_number=parse_quantity(json_dict.get("blockNumber")),
            index=parse_quantity(json_dict.get("transactionIndex")),
            timestamp=parse_quantity(json_dict.get("timeStamp")),
            block_tx_count=block_info.transaction_count if block_info else None,
            status=0 if json_dict.get("isError") == "1" else 1,
            gas_used=gas_used,
            gas_cost=wei_to_ether(gas_used * gas_price_wei) if gas_used is not None else None,
            from_relay_producer=from_relay_producer,
        )
