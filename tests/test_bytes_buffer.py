import pytest

from core.codec.bytes_buffer import (
    BytesBuffer, BytesReader, even_hex, hex_to_bytes, remove_hex_prefix,
)
from core.errors import InvalidInput, MalformedResponse, OutOfRange


def test_remove_hex_prefix_is_case_insensitive():
    assert remove_hex_prefix("0xab") == "ab"
    assert remove_hex_prefix("0XAB") == "AB"
    assert remove_hex_prefix("ab0x") == "ab0x"


def test_even_hex():
    assert even_hex("abc") == "0abc"
    assert even_hex("abcd") == "abcd"
    assert even_hex("") == ""


@pytest.mark.parametrize("value", [0, 1, 0xFF, 0x1234, 0xFFFF])
def test_uint16_is_four_hex_digits(value):
    rendered = BytesBuffer().write_uint16(value).render()
    assert rendered == "0x" + format(value, "04x")
    assert len(rendered) == 6


@pytest.mark.parametrize("value", [-1, 0x10000, 1 << 20])
def test_uint16_out_of_range(value):
    with pytest.raises(OutOfRange):
        BytesBuffer().write_uint16(value)


def test_out_of_range_is_invalid_input():
    with pytest.raises(InvalidInput):
        BytesBuffer().write_uint16(70000)


@pytest.mark.parametrize("value", [
    "0x0000000000000000000000000000000000000001",
    "0X0000000000000000000000000000000000000001",
    "0x1",
    "1",
    "001",
    1,
])
def test_address_is_padded_to_forty_digits(value):
    assert BytesBuffer().write_address(value).render() == "0x" + "0" * 39 + "1"


def test_address_mixed_case_is_lowered():
    rendered = BytesBuffer().write_address("0xC82ECc4572321aa9F051443C30a0a0fA792b3798").render()
    assert rendered == "0xc82ecc4572321aa9f051443c30a0a0fa792b3798"


def test_address_too_wide():
    with pytest.raises(OutOfRange):
        BytesBuffer().write_address(1 << 160)
    with pytest.raises(OutOfRange):
        BytesBuffer().write_address("0x01" + "00" * 20)


def test_uint256():
    assert BytesBuffer().write_uint256(255).render() == "0x" + "0" * 62 + "ff"
    assert BytesBuffer().write_uint256("0xff").render() == "0x" + "0" * 62 + "ff"
    assert BytesBuffer().write_uint256((1 << 256) - 1).render() == "0x" + "f" * 64
    with pytest.raises(OutOfRange):
        BytesBuffer().write_uint256(1 << 256)


def test_write_bytes_normalizes_odd_length():
    assert BytesBuffer().write_bytes("0xabc").render() == "0x0abc"
    assert BytesBuffer().write_bytes("ABCD").render() == "0xabcd"
    assert BytesBuffer().write_bytes(b"\x01\x02").render() == "0x0102"
    assert BytesBuffer().write_bytes("0x").render() == "0x"


@pytest.mark.parametrize("value", ["0xzz", "hello", "0x12 34", "0x0x12"])
def test_write_bytes_rejects_non_hex(value):
    with pytest.raises(InvalidInput):
        BytesBuffer().write_bytes(value)


def test_write_rejects_wrong_types():
    with pytest.raises(InvalidInput):
        BytesBuffer().write_bytes(12)
    with pytest.raises(InvalidInput):
        BytesBuffer().write_uint16(True)


def test_length_counts_bytes():
    buf = BytesBuffer()
    buf.write_uint16(1).write_address(1).write_uint256(1).write_bytes("0xabc")
    assert buf.length == 2 + 20 + 32 + 2
    assert len(buf) == buf.length


def test_clear_resets_and_allows_reuse():
    buf = BytesBuffer().write_uint16(5).write_bytes("0xff")
    buf.clear()
    assert buf.length == 0
    assert buf.render() == "0x"
    buf.write_uint16(7)
    assert buf.render() == "0x0007"


def test_render_does_not_consume():
    buf = BytesBuffer().write_uint16(1)
    assert buf.render() == buf.render() == "0x0001"


def test_from_bytes_measures_byte_length():
    assert BytesBuffer.from_bytes("0xabcdef").length == 3
    assert BytesBuffer.from_bytes("0xabc").length == 2


def test_hex_to_bytes():
    assert hex_to_bytes("0x0102") == b"\x01\x02"
    assert hex_to_bytes(bytearray(b"\x01")) == b"\x01"


def test_reader_reads_fields_in_order():
    data = BytesBuffer().write_uint16(2).write_address(3).write_bytes("0xbeef").render()
    reader = BytesReader(data)
    assert reader.read_uint16() == 2
    assert reader.read_address() == "0x" + "0" * 39 + "3"
    assert reader.read_bytes(2) == b"\xbe\xef"
    assert reader.at_end


def test_reader_overrun():
    reader = BytesReader("0x00")
    with pytest.raises(MalformedResponse):
        reader.read_uint16()


def test_reader_rejects_non_hex():
    with pytest.raises(MalformedResponse):
        BytesReader("0xnope")
