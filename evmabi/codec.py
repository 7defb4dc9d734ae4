"""Head-tail encoder and decoder over 32-byte words.

Layout of a sequence of items (top-level arguments, tuple fields, array
elements)::

    head(item_1) ... head(item_n) tail(item_1) ... tail(item_n)

Static items are written inline in the head. Dynamic items put a big-endian
offset in their head slot, measured from the first byte of the sequence, and
their content in the tail in head order.

Decoding is permissive about head-slot padding by default: bits above an
item's declared width are ignored and logged at DEBUG level, the same way
the EVM cleans narrow values. ``strict=True`` rejects them with
:class:`~evmabi.errors.DirtyPaddingError`.

Tail offsets may point anywhere, including at data another offset already
points to. Decoding stops with :class:`~evmabi.errors.DecodeError` once it
has read more than twice as many words as the buffer holds.
"""

from __future__ import annotations

import logging
from typing import Any, List, Sequence, Union

from .errors import DecodeError, DirtyPaddingError, EncodeError, InvalidUtf8Error, OutOfBoundsError
from .grammar import parse_type
from .types import (
    WORD_SIZE,
    AbiType,
    Address,
    Array,
    Bool,
    Bytes,
    FixedArray,
    FixedBytes,
    Int,
    String,
    Tuple,
    Uint,
)
from .values import (
    AddressValue,
    ArrayValue,
    BoolValue,
    BytesValue,
    FixedArrayValue,
    FixedBytesValue,
    IntValue,
    StringValue,
    TupleValue,
    UintValue,
    Value,
    coerce,
)

logger = logging.getLogger(__name__)

TypeLike = Union[AbiType, str]

_UINT256_MOD = 1 << 256


def _resolve(typ: TypeLike) -> AbiType:
    return parse_type(typ) if isinstance(typ, str) else typ


def _word(number: int) -> bytes:
    return number.to_bytes(WORD_SIZE, "big")


def _pad_right(raw: bytes) -> bytes:
    remainder = len(raw) % WORD_SIZE
    if remainder == 0:
        return raw
    return raw + b"\x00" * (WORD_SIZE - remainder)


# -- encoding ---------------------------------------------------------------
def _encode_word(typ: AbiType, value: Value) -> bytes:
    if isinstance(value, UintValue):
        return _word(value.value)
    if isinstance(value, IntValue):
        # Two's complement sign extension to the full word.
        return _word(value.value % _UINT256_MOD)
    if isinstance(value, AddressValue):
        return b"\x00" * 12 + value.raw
    if isinstance(value, BoolValue):
        return _word(1 if value.value else 0)
    if isinstance(value, FixedBytesValue):
        return value.value.ljust(WORD_SIZE, b"\x00")
    raise EncodeError(f"{type(value).__name__} is not a single-word value", expected=typ.canonical())


def _encode_item(typ: AbiType, value: Value) -> bytes:
    if isinstance(typ, (Uint, Int, Address, Bool, FixedBytes)):
        return _encode_word(typ, value)
    if isinstance(typ, Bytes):
        return _word(len(value.value)) + _pad_right(value.value)
    if isinstance(typ, String):
        raw = value.value.encode("utf-8")
        return _word(len(raw)) + _pad_right(raw)
    if isinstance(typ, Array):
        return _word(len(value.items)) + _encode_sequence([(typ.elem, item) for item in value.items])
    if isinstance(typ, FixedArray):
        return _encode_sequence([(typ.elem, item) for item in value.items])
    if isinstance(typ, Tuple):
        return _encode_sequence(list(zip(typ.types, value.values)))
    raise EncodeError(f"unsupported type {typ!r}")


def _encode_sequence(pairs: Sequence[tuple[AbiType, Value]]) -> bytes:
    head_length = sum(typ.head_size() for typ, _ in pairs)
    heads: List[bytes] = []
    tails: List[bytes] = []
    tail_length = 0
    for typ, value in pairs:
        encoded = _encode_item(typ, value)
        if typ.is_dynamic():
            heads.append(_word(head_length + tail_length))
            tails.append(encoded)
            tail_length += len(encoded)
        else:
            heads.append(encoded)
    return b"".join(heads) + b"".join(tails)


def encode(pairs: Sequence[tuple[TypeLike, Any]]) -> bytes:
    """Encode ``(type, value)`` pairs as one head-tail sequence.

    Values may be :class:`~evmabi.values.Value` instances or plain Python data
    accepted by :func:`~evmabi.values.coerce`.
    """

    resolved = []
    for index, (typ, obj) in enumerate(pairs):
        abi_type = _resolve(typ)
        resolved.append((abi_type, coerce(abi_type, obj, f"arg[{index}]")))
    return _encode_sequence(resolved)


def encode_values(types: Sequence[TypeLike], values: Sequence[Any]) -> bytes:
    if len(types) != len(values):
        raise EncodeError(
            f"expected {len(types)} values, got {len(values)}",
            expected=len(types),
            found=len(values),
        )
    return encode(list(zip(types, values)))


def encode_single(typ: TypeLike, value: Any) -> bytes:
    return encode([(typ, value)])


def encode_in_place(typ: TypeLike, value: Any, *, nested: bool = False) -> bytes:
    """Return the in-place encoding hashed into an indexed event topic.

    Value types use their 32-byte word. ``bytes``/``string`` contribute their
    raw content, padded to a word boundary only when nested. Arrays and
    tuples concatenate their members' in-place encodings with no offsets or
    length prefixes.
    """

    abi_type = _resolve(typ)
    item = coerce(abi_type, value, "topic")
    return _in_place(abi_type, item, nested)


def _in_place(typ: AbiType, value: Value, nested: bool) -> bytes:
    if isinstance(typ, (Bytes, String)):
        raw = value.value.encode("utf-8") if isinstance(typ, String) else value.value
        return _pad_right(raw) if nested else raw
    if isinstance(typ, (Array, FixedArray)):
        return b"".join(_in_place(typ.elem, item, True) for item in value.items)
    if isinstance(typ, Tuple):
        return b"".join(_in_place(field_type, item, True) for field_type, item in zip(typ.types, value.values))
    return _encode_word(typ, value)


# -- decoding ---------------------------------------------------------------
class _Budget:
    """Bound the number of words a decode may read to twice the buffer's word count.

    A canonical encoding reads every word at most once.
    """

    def __init__(self, data: bytes) -> None:
        self.remaining = 2 * (len(data) // WORD_SIZE) + 1

    def spend(self, offset: int) -> None:
        self.remaining -= 1
        if self.remaining < 0:
            raise DecodeError("encoding reuses more data than the buffer holds", offset=offset)


def _read_word(data: bytes, offset: int, what: str, budget: _Budget) -> bytes:
    if offset < 0 or offset + WORD_SIZE > len(data):
        raise OutOfBoundsError(
            f"cannot read {what}",
            offset=offset,
            size=WORD_SIZE,
            available=max(len(data) - offset, 0),
        )
    budget.spend(offset)
    return data[offset : offset + WORD_SIZE]


def _read_uint(data: bytes, offset: int, what: str, budget: _Budget) -> int:
    return int.from_bytes(_read_word(data, offset, what, budget), "big")


def _dirty(typ: AbiType, offset: int, strict: bool) -> None:
    if strict:
        raise DirtyPaddingError(f"non-canonical padding in {typ.canonical()} head slot", offset=offset)
    logger.debug("ignored non-zero padding in %s head slot at byte %d", typ.canonical(), offset)


def _decode_word(typ: AbiType, data: bytes, pos: int, strict: bool, budget: _Budget) -> Value:
    word = _read_word(data, pos, typ.canonical(), budget)
    number = int.from_bytes(word, "big")
    if isinstance(typ, Uint):
        value = number & ((1 << typ.bits) - 1)
        if value != number:
            _dirty(typ, pos, strict)
        return UintValue(value, typ.bits)
    if isinstance(typ, Int):
        value = number & ((1 << typ.bits) - 1)
        if value >= 1 << (typ.bits - 1):
            value -= 1 << typ.bits
        if value % _UINT256_MOD != number:
            _dirty(typ, pos, strict)
        return IntValue(value, typ.bits)
    if isinstance(typ, Address):
        if any(word[:12]):
            _dirty(typ, pos, strict)
        return AddressValue(word[12:])
    if isinstance(typ, Bool):
        if number > 1:
            _dirty(typ, pos, strict)
        return BoolValue(number != 0)
    if isinstance(typ, FixedBytes):
        if any(word[typ.size :]):
            _dirty(typ, pos, strict)
        return FixedBytesValue(word[: typ.size])
    raise DecodeError(f"{typ.canonical()} is not a single-word type", offset=pos)


def _decode_item(typ: AbiType, data: bytes, pos: int, strict: bool, budget: _Budget) -> Value:
    """Decode ``typ`` whose encoding starts at ``pos``.

    For dynamic types ``pos`` is where the content begins (the offset has
    already been followed); for static types it is the head slot itself.
    """

    if isinstance(typ, (Uint, Int, Address, Bool, FixedBytes)):
        return _decode_word(typ, data, pos, strict, budget)
    if isinstance(typ, (Bytes, String)):
        length = _read_uint(data, pos, f"{typ.canonical()} length", budget)
        start = pos + WORD_SIZE
        if start + length > len(data):
            raise OutOfBoundsError(
                f"{typ.canonical()} content exceeds buffer",
                offset=start,
                size=length,
                available=len(data) - start,
            )
        raw = data[start : start + length]
        if isinstance(typ, Bytes):
            return BytesValue(raw)
        try:
            return StringValue(raw.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise InvalidUtf8Error(f"invalid UTF-8 in string: {exc.reason}", offset=start + exc.start) from None
    if isinstance(typ, Array):
        count = _read_uint(data, pos, "array length", budget)
        return ArrayValue(tuple(_decode_repeated(typ.elem, count, data, pos + WORD_SIZE, strict, budget)))
    if isinstance(typ, FixedArray):
        return FixedArrayValue(tuple(_decode_repeated(typ.elem, typ.length, data, pos, strict, budget)))
    if isinstance(typ, Tuple):
        values = _decode_sequence(typ.types, data, pos, strict, budget)
        return TupleValue(tuple(zip(typ.names, values)))
    raise DecodeError(f"unsupported type {typ!r}", offset=pos)


def _decode_repeated(
    elem: AbiType, count: int, data: bytes, base: int, strict: bool, budget: _Budget
) -> List[Value]:
    # Every element occupies at least its head size; reject impossible counts before allocating.
    needed = count * elem.head_size()
    if base + needed > len(data):
        raise OutOfBoundsError(
            f"{count} x {elem.canonical()} exceeds buffer",
            offset=base,
            size=needed,
            available=max(len(data) - base, 0),
        )
    return _decode_sequence([elem] * count, data, base, strict, budget)


def _decode_sequence(
    types: Sequence[AbiType], data: bytes, base: int, strict: bool, budget: _Budget
) -> List[Value]:
    values: List[Value] = []
    cursor = base
    for typ in types:
        if typ.is_dynamic():
            offset = _read_uint(data, cursor, f"{typ.canonical()} offset", budget)
            start = base + offset
            if start + WORD_SIZE > len(data):
                raise OutOfBoundsError(
                    f"{typ.canonical()} offset {offset} points past the end",
                    offset=cursor,
                    size=WORD_SIZE,
                    available=max(len(data) - start, 0),
                )
            values.append(_decode_item(typ, data, start, strict, budget))
        else:
            values.append(_decode_item(typ, data, cursor, strict, budget))
        cursor += typ.head_size()
    return values


def decode(types: Sequence[TypeLike], data: bytes, *, strict: bool = False) -> List[Value]:
    """Decode ``data`` as a head-tail sequence of ``types``.

    Raises :class:`~evmabi.errors.DecodeError` when tail offsets alias one
    another so heavily that decoding would read more than twice the buffer.
    """

    raw = bytes(data)
    return _decode_sequence([_resolve(typ) for typ in types], raw, 0, strict, _Budget(raw))


def decode_single(typ: TypeLike, data: bytes, *, strict: bool = False) -> Value:
    return decode([typ], data, strict=strict)[0]


__all__ = [
    "decode",
    "decode_single",
    "encode",
    "encode_in_place",
    "encode_single",
    "encode_values",
]
