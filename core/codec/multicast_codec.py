"""
Multicast request/response codec

Request layouts (all integers big-endian):

    multicast: [2B count] ([20B target][2B len][len bytes data])*
    cast:      [2B count][20B target] ([2B len][len bytes data])*
    eth:       ([20B address])*

Responses from multicast/cast are (success, result) tuples, eth returns a
flat table of 32-byte balances in request order and state returns a fixed
5-tuple.
"""
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, NamedTuple, Sequence

from hexbytes import HexBytes

from core.codec.bytes_buffer import (
    BytesBuffer, BytesReader, HexLike,
    even_hex, hex_to_bytes, is_hex, remove_hex_prefix,
)
from core.errors import InvalidInput, MalformedResponse, OutOfRange
from utils.logger import get_logger

logger = get_logger(__name__)

ADDRESS_HEX_LEN = 40
WORD_HEX_LEN = 64
MAX_UINT16 = 0xFFFF
ZERO_BALANCE = "0x00"


class CallPayload(NamedTuple):
    target: str
    call_data: HexLike


class CallResult(NamedTuple):
    success: bool
    result: HexBytes


@dataclass(frozen=True)
class BlockchainState:
    """Chain snapshot returned by the aggregator's state()"""
    block_number: int
    previous_block_hash: HexBytes
    difficulty: int
    gaslimit: int
    timestamp: int


def normalize_address(address: str) -> str:
    """
    Trim, strip the 0x prefix and left-pad to 40 hex digits.
    Longer input is kept as is, never truncated.
    """
    if not isinstance(address, str):
        raise InvalidInput(f"Address must be a hex string, got {type(address).__name__}")
    digits = remove_hex_prefix(address.strip())
    if not digits or not is_hex(digits):
        raise InvalidInput(f"Not a hex address: {address!r}")
    return digits.lower().rjust(ADDRESS_HEX_LEN, "0")


def canonical_address(address: str) -> str:
    """0x + 40 lowercase hex digits, used as balance map key"""
    return f"0x{normalize_address(address)}"


def _check_count(count: int, what: str):
    if count > MAX_UINT16:
        raise OutOfRange(f"{count} {what} exceed the 16-bit count field")


def _write_call_data(buf: BytesBuffer, call_data: HexLike):
    data = BytesBuffer.from_bytes(call_data)
    # length field counts bytes, not hex characters
    buf.write_uint16(data.length)
    buf.write_bytes(data.to_bytes())


def encode_multicast(calls: Sequence[CallPayload]) -> str:
    """Encode calls to different targets, in order"""
    _check_count(len(calls), "calls")
    buf = BytesBuffer()
    buf.write_uint16(len(calls))
    for target, call_data in calls:
        buf.write_address(target)
        _write_call_data(buf, call_data)
    logger.debug(f"Encoded multicast of {len(calls)} calls ({buf.length} bytes)")
    return buf.render()


def encode_cast(target: str, calls: Sequence[HexLike]) -> str:
    """Encode calls that all go to one target"""
    _check_count(len(calls), "calls")
    buf = BytesBuffer()
    buf.write_uint16(len(calls))
    buf.write_address(target)
    for call_data in calls:
        _write_call_data(buf, call_data)
    logger.debug(f"Encoded cast of {len(calls)} calls to {target} ({buf.length} bytes)")
    return buf.render()


def encode_eth_balances(addresses: Iterable[str]) -> str:
    """Concatenated 20-byte addresses; count is implied by the length"""
    return "0x" + "".join(even_hex(normalize_address(a)) for a in addresses)


def decode_multicast_request(encoded: HexLike) -> list[CallPayload]:
    """Inverse of encode_multicast"""
    reader = BytesReader(encoded)
    count = reader.read_uint16()
    calls = []
    for _ in range(count):
        target = reader.read_address()
        size = reader.read_uint16()
        calls.append(CallPayload(target, reader.read_bytes(size)))
    if not reader.at_end:
        raise MalformedResponse(f"{reader.remaining} trailing bytes after {count} calls")
    return calls


def decode_cast_request(encoded: HexLike) -> tuple[str, list[bytes]]:
    """Inverse of encode_cast"""
    reader = BytesReader(encoded)
    count = reader.read_uint16()
    target = reader.read_address()
    calls = [reader.read_bytes(reader.read_uint16()) for _ in range(count)]
    if not reader.at_end:
        raise MalformedResponse(f"{reader.remaining} trailing bytes after {count} calls")
    return target, calls


def _call_result(item: Any) -> CallResult:
    if isinstance(item, Mapping):
        if "success" not in item:
            raise MalformedResponse(f"Call result without success flag: {item!r}")
        success = item["success"]
        result = item["result"] if "result" in item else item.get("returnData")
    elif isinstance(item, (tuple, list)) and len(item) == 2:
        success, result = item
    else:
        raise MalformedResponse(f"Unexpected call result shape: {item!r}")

    if result is None:
        raise MalformedResponse(f"Call result without data: {item!r}")
    try:
        return CallResult(bool(success), HexBytes(result))
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"Call result data is not bytes: {result!r}") from e


def decode_call_results(raw: Iterable[Any]) -> list[CallResult]:
    """(success, result) per call, same order as the request"""
    return [_call_result(item) for item in raw]


def decode_balances(raw: HexLike, addresses: Sequence[str]) -> dict[str, str]:
    """
    Slice the flat balance table returned by eth().

    Each entry is one 32-byte word. Leading zeros are dropped and the value is
    re-padded to whole bytes, so zero comes back as "0x00".
    """
    if isinstance(raw, str):
        table = remove_hex_prefix(raw)
        if not is_hex(table):
            raise MalformedResponse(f"Balance table is not hex: {raw[:80]!r}")
    elif isinstance(raw, (bytes, bytearray, memoryview)):
        table = bytes(raw).hex()
    else:
        raise MalformedResponse(f"Unexpected balance table type {type(raw).__name__}")

    try:
        keys = [canonical_address(address) for address in addresses]
    except InvalidInput as e:
        raise MalformedResponse(f"Cannot key balance table: {e}") from e

    expected = WORD_HEX_LEN * len(addresses)
    if len(table) != expected:
        raise MalformedResponse(
            f"Balance table has {len(table)} hex digits, expected {expected} "
            f"for {len(addresses)} addresses"
        )

    balances: dict[str, str] = {}
    for i, key in enumerate(keys):
        j = i * WORD_HEX_LEN
        digits = table[j:j + WORD_HEX_LEN].lstrip("0")
        balances[key] = (
            f"0x{even_hex(digits).lower()}" if digits else ZERO_BALANCE
        )
    return balances


def balance_to_int(balance: str) -> int:
    return int.from_bytes(hex_to_bytes(balance), "big")


_STATE_FIELDS = ("blockNumber", "previousBlockHash", "difficulty", "gaslimit", "timestamp")


def _uint(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedResponse(f"State field {name} is not an unsigned integer: {value!r}")
    return value


def decode_state(raw: Any) -> BlockchainState:
    """Field-for-field copy of the (blockNumber, hash, difficulty, gaslimit, timestamp) tuple"""
    if isinstance(raw, Mapping):
        missing = [name for name in _STATE_FIELDS if name not in raw]
        if missing:
            raise MalformedResponse(f"State is missing {', '.join(missing)}")
        values = [raw[name] for name in _STATE_FIELDS]
    else:
        try:
            values = list(raw)
        except TypeError as e:
            raise MalformedResponse(f"Unexpected state shape: {raw!r}") from e
        if len(values) != len(_STATE_FIELDS):
            raise MalformedResponse(f"State has {len(values)} fields, expected {len(_STATE_FIELDS)}")

    block_number, block_hash, difficulty, gaslimit, timestamp = values
    try:
        block_hash = HexBytes(block_hash)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"State previousBlockHash is not bytes: {block_hash!r}") from e

    return BlockchainState(
        block_number=_uint(block_number, "blockNumber"),
        previous_block_hash=block_hash,
        difficulty=_uint(difficulty, "difficulty"),
        gaslimit=_uint(gaslimit, "gaslimit"),
        timestamp=_uint(timestamp, "timestamp"),
    )
