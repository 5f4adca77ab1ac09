import json
from typing import Any, Optional

from eth_abi.exceptions import DecodingError
from eth_utils import to_checksum_address
from web3 import Web3
from web3.exceptions import Web3Exception

from explorer.clients.etherscan_client import EtherscanClient
from explorer.models.registry import DecodedCall
from utils.formatter_utils import ZERO_ADDRESS
from utils.logger_utils import get_logger

logger = get_logger("Calldata Decoder Service")

EMPTY_INPUTS = ("", "0x")


def _format_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [_format_value(item) for item in value]
    if isinstance(value, dict):
        return {key: _format_value(item) for key, item in value.items()}
    return value


def _function_signature(function) -> str:
    input_types = ",".join(param["type"] for param in function.abi.get("inputs", []))
    return f"{function.fn_name}({input_types})"


class CalldataDecoderService(object):
    """
    Decodes transaction calldata against the verified ABI of the called contract.
    """

    def __init__(self, etherscan_client: EtherscanClient, web3: Web3 = None):
        self._etherscan_client = etherscan_client
        self._web3 = web3 or Web3()

    async def decode(self, to_address: Optional[str], input_data: Optional[str]) -> Optional[DecodedCall]:
        """
        Returns the contract name and the decoded call, a DecodedCall with only a
        contract name when the ABI does not match the input, or None when there is
        nothing to decode (plain transfer, contract creation, unverified contract).
        """
        if not to_address or to_address == ZERO_ADDRESS or input_data in EMPTY_INPUTS or input_data is None:
            return None

        source = await self._etherscan_client.get_contract_source(to_address)
        if not source:
            return None

        contract_name = source.get("ContractName") or None
        try:
            abi = json.loads(source.get("ABI") or "")
        except ValueError:
            # "Contract source code not verified"
            logger.debug(f"No verified ABI for {to_address}")
            return DecodedCall(contract_name=contract_name) if contract_name else None

        contract = self._web3.eth.contract(address=to_checksum_address(to_address), abi=abi)
        try:
            function, params = contract.decode_function_input(input_data)
        except (ValueError, DecodingError, Web3Exception) as e:
            logger.debug(f"Could not decode input for {to_address} with its ABI: {e}")
            return DecodedCall(contract_name=contract_name)

        return DecodedCall(
            contract_name=contract_name,
            function_signature=_function_signature(function),
            arguments={name: _format_value(value) for name, value in params.items()},
        )
