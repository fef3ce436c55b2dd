"""
Byte stream writer/reader for the multicast request format

Fields are big-endian and whole bytes. Addresses are 20 bytes, words are
32 bytes, counts and lengths are 16-bit. Hex only appears at the edges:
inputs may be hex strings and render() produces a 0x-prefixed string.
"""
import re
from typing import Union

from core.errors import InvalidInput, OutOfRange, MalformedResponse

HexLike = Union[str, bytes, bytearray, memoryview]

ADDRESS_BITS = 160
UINT256_BITS = 256
UINT16_BITS = 16

_HEX_PREFIX = re.compile(r"^0x", re.IGNORECASE)
_HEX_DIGITS = re.compile(r"^[0-9a-fA-F]*$")


def is_hex(value: str) -> bool:
    """True when value (no prefix) holds only hex digits"""
    return bool(_HEX_DIGITS.match(value))


def remove_hex_prefix(value: str) -> str:
    """Strip a leading 0x / 0X"""
    return _HEX_PREFIX.sub("", value)


def even_hex(value: str) -> str:
    """Left-pad a hex string with one zero nibble when it has odd length"""
    return value if len(value) % 2 == 0 else f"0{value}"


def hex_to_bytes(value: HexLike) -> bytes:
    """
    Convert a hex string (prefix optional, odd length allowed) or a
    bytes-like value into bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if not isinstance(value, str):
        raise InvalidInput(f"Expected hex string or bytes, got {type(value).__name__}")
    digits = remove_hex_prefix(value)
    if not is_hex(digits):
        raise InvalidInput(f"Not a hex string: {value!r}")
    return bytes.fromhex(even_hex(digits))


def _to_int(value: Union[int, HexLike], bits: int) -> int:
    if isinstance(value, bool):
        raise InvalidInput("Booleans are not valid numeric fields")
    if isinstance(value, int):
        number = value
    else:
        number = int.from_bytes(hex_to_bytes(value), "big")
    if number < 0 or number >= 1 << bits:
        raise OutOfRange(f"{value!r} does not fit in {bits} bits")
    return number


class BytesBuffer:
    """
    Accumulates fields for one encoded request.

    Writers return self so calls can be chained:

        BytesBuffer().write_uint16(1).write_address(target).render()
    """

    def __init__(self):
        self._buf = bytearray()

    @classmethod
    def from_bytes(cls, value: HexLike) -> "BytesBuffer":
        return cls().write_bytes(value)

    @property
    def length(self) -> int:
        """Total size in bytes"""
        return len(self._buf)

    def __len__(self) -> int:
        return len(self._buf)

    def _write_int(self, value: Union[int, HexLike], bits: int) -> "BytesBuffer":
        number = _to_int(value, bits)
        self._buf += number.to_bytes(bits // 8, "big")
        return self

    def write_bytes(self, value: HexLike) -> "BytesBuffer":
        """Append raw bytes with no width constraint"""
        self._buf += hex_to_bytes(value)
        return self

    def write_address(self, value: Union[int, HexLike]) -> "BytesBuffer":
        return self._write_int(value, ADDRESS_BITS)

    def write_uint256(self, value: Union[int, HexLike]) -> "BytesBuffer":
        return self._write_int(value, UINT256_BITS)

    def write_uint16(self, value: Union[int, HexLike]) -> "BytesBuffer":
        return self._write_int(value, UINT16_BITS)

    def clear(self) -> "BytesBuffer":
        self._buf = bytearray()
        return self

    def to_bytes(self) -> bytes:
        return bytes(self._buf)

    def render(self) -> str:
        """0x-prefixed hex of every field in append order"""
        return f"0x{self._buf.hex()}"

    def __repr__(self) -> str:
        return f"BytesBuffer({self.render()})"


class BytesReader:
    """Sequential reader over an encoded request"""

    def __init__(self, data: HexLike):
        try:
            self._data = hex_to_bytes(data)
        except InvalidInput as e:
            raise MalformedResponse(str(e)) from e
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._offset

    @property
    def at_end(self) -> bool:
        return self.remaining == 0

    def read_bytes(self, size: int) -> bytes:
        if size < 0 or size > self.remaining:
            raise MalformedResponse(
                f"Read of {size} bytes at offset {self._offset} overruns "
                f"{len(self._data)}-byte payload"
            )
        chunk = self._data[self._offset:self._offset + size]
        self._offset += size
        return chunk

    def read_uint16(self) -> int:
        return int.from_bytes(self.read_bytes(UINT16_BITS // 8), "big")

    def read_uint256(self) -> int:
        return int.from_bytes(self.read_bytes(UINT256_BITS // 8), "big")

    def read_address(self) -> str:
        return f"0x{self.read_bytes(ADDRESS_BITS // 8).hex()}"
