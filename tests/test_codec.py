from __future__ import annotations

import logging

import eth_abi
import pytest

from evmabi.codec import decode, decode_single, encode, encode_in_place, encode_single, encode_values
from evmabi.errors import DecodeError, DirtyPaddingError, EncodeError, InvalidUtf8Error, OutOfBoundsError
from evmabi.types import Array, FixedArray, String, Tuple, Uint
from evmabi.values import (
    AddressValue,
    ArrayValue,
    BoolValue,
    BytesValue,
    FixedArrayValue,
    IntValue,
    StringValue,
    TopicHash,
    TupleValue,
    UintValue,
)

ALICE = "0x" + "11" * 20
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"


def _word(number: int) -> bytes:
    return number.to_bytes(32, "big")


# -- encoding ---------------------------------------------------------------
def test_uint_and_string_layout() -> None:
    encoded = encode([("uint256", 1), ("string", "hi")])
    assert encoded == _word(1) + _word(0x40) + _word(2) + b"hi" + b"\x00" * 30


@pytest.mark.parametrize(
    "types, values",
    [
        (["uint256", "string"], [5, "hi"]),
        (["int8", "int256"], [-1, -(2**255)]),
        (["address", "bool", "bytes4"], [ALICE, True, b"\xde\xad\xbe\xef"]),
        (["bytes", "string"], [b"", ""]),
        (["uint256[2]", "string", "uint8[]"], [[1, 2], "x" * 40, [7, 8, 9]]),
        (["(uint256,string)[]"], [[(1, "a"), (2, "bcdef")]]),
        (["(address,(bool,bytes32))"], [(ALICE, (False, b"\x01" * 32))]),
        (["string[2]", "uint32[][2]"], [["a", "b"], [[1, 2], [3]]]),
        (["bytes[]"], [[b"\x01" * 33, b""]]),
    ],
)
def test_encoding_matches_reference_codec(types, values) -> None:
    assert encode_values(types, values) == eth_abi.encode(types, values)


def test_static_array_is_inlined_in_head() -> None:
    encoded = encode([("uint256[3]", [1, 2, 3]), ("uint256", 4)])
    assert encoded == b"".join(_word(n) for n in (1, 2, 3, 4))


def test_negative_int_is_sign_extended() -> None:
    assert encode_single("int24", -2) == b"\xff" * 31 + b"\xfe"


def test_address_accepts_checksum_and_rejects_bad_checksum() -> None:
    assert encode_single("address", WETH)[12:] == bytes.fromhex(WETH[2:].lower())
    assert encode_single("address", WETH.lower()) == encode_single("address", WETH)
    with pytest.raises(EncodeError):
        encode_single("address", "0xC02AAA39b223FE8D0A0e5C4F27eAD9083C756Cc2")
    with pytest.raises(EncodeError):
        encode_single("address", "0x1234")


@pytest.mark.parametrize(
    "typ, value",
    [
        ("uint8", 256),
        ("uint256", -1),
        ("int8", 128),
        ("int8", -129),
        ("uint256", True),
        ("bool", 1),
        ("bytes4", b"\x00" * 5),
        ("string", b"abc"),
        ("uint256[2]", [1]),
        ("(uint256,bool)", [1]),
        ("uint256[]", "12"),
        ("string", "\ud800"),
        ("string[]", ["ok", "bad \udfff"]),
        ("string", StringValue("\ud83d")),
    ],
)
def test_encode_rejects_mismatched_values(typ: str, value) -> None:
    with pytest.raises(EncodeError):
        encode_single(typ, value)


def test_encode_error_reports_path() -> None:
    with pytest.raises(EncodeError) as excinfo:
        encode([("uint256", 1), ("(uint8,bool)[]", [(1, True), (300, False)])])
    assert excinfo.value.path == "arg[1][1][0]"
    assert excinfo.value.found == 300


def test_unencodable_text_reports_path() -> None:
    with pytest.raises(EncodeError) as excinfo:
        encode([("string[]", ["ok", "bad \udfff"])])
    assert excinfo.value.path == "arg[0][1]"
    assert excinfo.value.expected == "valid UTF-8 text"


def test_encode_values_arity() -> None:
    with pytest.raises(EncodeError):
        encode_values(["uint256", "bool"], [1])


def test_encode_accepts_value_objects() -> None:
    value = TupleValue((("amount", UintValue(7)), ("memo", StringValue("x"))))
    typ = Tuple((("amount", Uint()), ("memo", String())))
    assert encode([(typ, value)]) == eth_abi.encode(["(uint256,string)"], [(7, "x")])


def test_topic_hash_cannot_be_encoded() -> None:
    with pytest.raises(EncodeError):
        encode_single("string", TopicHash(b"\x00" * 32, String()))


# -- decoding ---------------------------------------------------------------
def test_decode_nested_dynamic_arrays() -> None:
    data = bytes.fromhex(
        "0000000000000000000000000000000000000000000000000000000000000060"
        "0000000000000000000000000000000000000000000000000000000000000005"
        "00000000000000000000000000000000000000000000000000000000000000a0"
        "0000000000000000000000000000000000000000000000000000000000000003"
        "6162630000000000000000000000000000000000000000000000000000000000"
        "0000000000000000000000000000000000000000000000000000000000000040"
        "00000000000000000000000000000000000000000000000000000000000000a0"
        "0000000000000000000000000000000000000000000000000000000000000002"
        "0000000000000000000000000000000000000000000000000000000000000001"
        "0000000000000000000000000000000000000000000000000000000000000002"
        "0000000000000000000000000000000000000000000000000000000000000001"
        "0000000000000000000000000000000000000000000000000000000000000003"
    )
    values = decode(["string", "uint32", "uint32[][2]"], data)
    assert values == [
        StringValue("abc"),
        UintValue(5, 32),
        FixedArrayValue(
            (
                ArrayValue((UintValue(1, 32), UintValue(2, 32))),
                ArrayValue((UintValue(3, 32),)),
            )
        ),
    ]


def test_decode_reference_encodings() -> None:
    types = ["address", "int16", "bytes", "(uint256,string)[]", "bool[2]"]
    values = [ALICE, -300, b"\x00\x01", [(1, "one"), (2, "two")], [True, False]]
    decoded = decode(types, eth_abi.encode(types, values))
    assert [value.to_python() for value in decoded] == [
        "0x1111111111111111111111111111111111111111",
        -300,
        b"\x00\x01",
        [[1, "one"], [2, "two"]],
        [True, False],
    ]
    assert isinstance(decoded[0], AddressValue)
    assert isinstance(decoded[1], IntValue)
    assert isinstance(decoded[2], BytesValue)


def test_named_tuple_decodes_to_mapping() -> None:
    typ = Tuple((("a", Uint()), ("b", String())))
    decoded = decode_single(typ, encode_single(typ, {"a": 3, "b": "z"}))
    assert decoded.to_python() == {"a": 3, "b": "z"}


def test_decode_ignores_unused_trailing_bytes() -> None:
    assert decode(["uint256"], _word(9) + b"\x00" * 7) == [UintValue(9)]


def test_truncated_static_input() -> None:
    with pytest.raises(OutOfBoundsError) as excinfo:
        decode(["uint256"], b"\x00" * 31)
    assert excinfo.value.offset == 0
    assert excinfo.value.available == 31


def test_offset_past_end() -> None:
    with pytest.raises(OutOfBoundsError):
        decode(["string"], _word(0x1000))


def test_length_past_end() -> None:
    with pytest.raises(OutOfBoundsError):
        decode(["bytes"], _word(0x20) + _word(64) + b"\x01" * 32)


def test_huge_array_count_is_rejected_before_allocation() -> None:
    with pytest.raises(OutOfBoundsError):
        decode(["uint256[]"], _word(0x20) + _word(2**200))


def _aliased_nested_arrays(depth: int, width: int) -> bytes:
    # Every element offset of a level points at the same child array.
    data = _word(0x20)
    for level in range(depth):
        data += _word(width)
        if level == depth - 1:
            data += b"".join(_word(n) for n in range(width))
        else:
            data += _word(width * 32) * width
    return data


def test_aliased_offsets_cannot_amplify_decoding() -> None:
    data = _aliased_nested_arrays(depth=4, width=30)
    assert len(data) <= 4_000
    with pytest.raises(DecodeError) as excinfo:
        decode(["uint256[][][][]"], data)
    assert not isinstance(excinfo.value, OutOfBoundsError)


def test_single_aliased_level_is_tolerated() -> None:
    # Two elements sharing one tail still fit the read allowance.
    shared = _word(0x20) + _word(2) + _word(0x40) * 2 + _word(1) + _word(7)
    assert decode(["uint256[][]"], shared)[0].to_python() == [[7], [7]]


def test_nested_offsets_are_relative_to_enclosing_sequence() -> None:
    data = eth_abi.encode(["uint256", "(uint256,string)"], [1, (2, "nested")])
    assert decode(["uint256", "(uint256,string)"], data)[1].to_python() == [2, "nested"]


def test_invalid_utf8() -> None:
    with pytest.raises(InvalidUtf8Error):
        decode(["string"], _word(0x20) + _word(2) + b"\xff\xfe" + b"\x00" * 30)


def test_decode_errors_share_a_base() -> None:
    assert issubclass(OutOfBoundsError, DecodeError)
    assert issubclass(DirtyPaddingError, DecodeError)
    assert issubclass(DecodeError, ValueError)


# -- padding ----------------------------------------------------------------
def test_dirty_padding_is_masked_by_default(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="evmabi.codec")
    word = _word(0x0101)
    assert decode(["uint8"], word) == [UintValue(1, 8)]
    assert decode(["bool"], _word(2)) == [BoolValue(True)]
    assert decode(["int8"], _word(0xFF)) == [IntValue(-1, 8)]
    assert decode(["address"], b"\x01" + b"\x00" * 11 + b"\x22" * 20)[0].raw == b"\x22" * 20
    assert "padding" in caplog.text


@pytest.mark.parametrize(
    "typ, word",
    [
        ("uint8", _word(0x0101)),
        ("bool", _word(2)),
        ("int8", _word(0xFF)),
        ("address", b"\x01" + b"\x00" * 31),
        ("bytes2", b"\xaa\xbb\xcc" + b"\x00" * 29),
    ],
)
def test_strict_rejects_dirty_padding(typ: str, word: bytes) -> None:
    with pytest.raises(DirtyPaddingError):
        decode([typ], word, strict=True)


def test_strict_accepts_clean_words() -> None:
    data = eth_abi.encode(["int8", "uint16", "bytes2"], [-5, 65535, b"\xaa\xbb"])
    assert [value.to_python() for value in decode(["int8", "uint16", "bytes2"], data, strict=True)] == [
        -5,
        65535,
        b"\xaa\xbb",
    ]


# -- in-place encoding for topics -------------------------------------------
def test_in_place_encoding() -> None:
    assert encode_in_place("string", "abc") == b"abc"
    assert encode_in_place("bytes", b"\x01\x02") == b"\x01\x02"
    assert encode_in_place("uint8[]", [1, 2]) == _word(1) + _word(2)
    assert encode_in_place(FixedArray(String(), 2), ["a", "b"]) == b"a" + b"\x00" * 31 + b"b" + b"\x00" * 31
    assert encode_in_place("(uint256,string)", (5, "hi")) == _word(5) + b"hi" + b"\x00" * 30
    assert encode_in_place(Array(Uint()), []) == b""
