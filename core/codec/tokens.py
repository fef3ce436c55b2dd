"""
ERC-20 / ERC-721 call data for batched balance lookups
"""
from typing import Optional

from eth_abi import encode, decode
from eth_abi.exceptions import DecodingError
from web3 import Web3

from core.codec.bytes_buffer import hex_to_bytes
from core.codec.multicast_codec import CallResult, canonical_address
from core.errors import MalformedResponse

BALANCE_OF_SELECTOR = bytes(Web3.keccak(text="balanceOf(address)")[:4])
OWNER_OF_SELECTOR = bytes(Web3.keccak(text="ownerOf(uint256)")[:4])


def erc20_balance_of(owner: str) -> bytes:
    """balanceOf(owner) call data"""
    return BALANCE_OF_SELECTOR + encode(["address"], [hex_to_bytes(canonical_address(owner))])


# ERC-721 balanceOf has the same selector and argument layout
erc721_balance_of = erc20_balance_of


def erc721_owner_of(token_id: int) -> bytes:
    """ownerOf(tokenId) call data"""
    return OWNER_OF_SELECTOR + encode(["uint256"], [token_id])


def _decode_single(abi_type: str, result: CallResult):
    if not result.success or not result.result:
        return None
    try:
        return decode([abi_type], bytes(result.result))[0]
    except DecodingError as e:
        raise MalformedResponse(f"Cannot decode {abi_type} from 0x{bytes(result.result).hex()}") from e


def decode_uint256_result(result: CallResult) -> Optional[int]:
    """Returns None for failed calls"""
    return _decode_single("uint256", result)


def decode_address_result(result: CallResult) -> Optional[str]:
    """Returns None for failed calls"""
    address = _decode_single("address", result)
    return address.lower() if address is not None else None
