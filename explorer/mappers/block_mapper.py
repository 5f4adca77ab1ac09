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
# Modified for the explorer: only the block metadata used by transaction
# records is mapped.

from typing import Any, Dict

from explorer.models.registry import BlockInfo
from utils.formatter_utils import hex_to_dec


class BlockMapper(object):
    @staticmethod
    def json_dict_to_block_info(json_dict: Dict[str, Any]) -> BlockInfo:
        transactions = json_dict.get("transactions")
        return BlockInfo(
            number=hex_to_dec(json_dict.get("number")),
            timestamp=hex_to_dec(json_dict.get("timestamp")),
            transaction_count=len(transactions) if transactions is not None else None,
            base_fee_per_gas=hex_to_dec(json_dict.get("baseFeePerGas")) or 0,
        )
