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

from decimal import Decimal
from typing import Optional

from eth_utils import is_address, to_checksum_address, to_int
from web3 import Web3

from utils.logger_utils import get_logger

logger = get_logger("Formatter Utils")

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def hex_to_dec(hex_string: str | None) -> int | None:
    """
    Converts a hex string to decimal integer.
    """
    if hex_string is None:
        return None
    try:
        return to_int(hexstr=hex_string)
    except (ValueError, TypeError):
        logger.warning(f"Invalid hex string for conversion: {hex_string}")
        return None


def parse_quantity(value: int | str | None) -> int | None:
    """
    Parses a numeric provider field. Node RPCs return 0x-prefixed hex, explorer
    APIs and the relay sometimes return plain decimal strings.
    """
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.lower().startswith("0x"):
        return hex_to_dec(value)
    try:
        return int(value, 10)
    except (ValueError, TypeError):
        logger.warning(f"Invalid numeric value for conversion: {value}")
        return None


def wei_to_gwei(wei: int | None) -> Decimal | None:
    if wei is None:
        return None
    return Decimal(Web3.from_wei(wei, "gwei"))


def wei_to_ether(wei: int | None) -> Decimal | None:
    if wei is None:
        return None
    return Decimal(Web3.from_wei(wei, "ether"))


def to_display_address(address: Optional[str]) -> str:
    """
    Checksummed address; a missing recipient (contract creation) maps to the zero address.
    """
    if not address:
        return to_checksum_address(ZERO_ADDRESS)
    if not is_address(address):
        logger.warning(f"Invalid address, keeping raw value: {address}")
        return address
    return to_checksum_address(address)


def gwei_to_wei(gwei: Decimal | None) -> int | None:
    if gwei is None:
        return None
    return int(Web3.to_wei(gwei, "gwei"))
