"""Decoded ABI values and coercion of native Python input."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

from eth_utils import decode_hex, is_checksum_address, is_hex, remove_0x_prefix, to_checksum_address

from .errors import EncodeError
from .types import (
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


class Value:
    """Common behaviour of all decoded values."""

    def to_python(self) -> Any:
        raise NotImplementedError


@dataclass(frozen=True)
class UintValue(Value):
    value: int
    bits: int = 256

    def to_python(self) -> int:
        return self.value


@dataclass(frozen=True)
class IntValue(Value):
    value: int
    bits: int = 256

    def to_python(self) -> int:
        return self.value


@dataclass(frozen=True)
class AddressValue(Value):
    raw: bytes

    @property
    def checksum(self) -> str:
        return to_checksum_address(self.raw)

    def to_python(self) -> str:
        return self.checksum


@dataclass(frozen=True)
class BoolValue(Value):
    value: bool

    def to_python(self) -> bool:
        return self.value


@dataclass(frozen=True)
class FixedBytesValue(Value):
    value: bytes

    def to_python(self) -> bytes:
        return self.value


@dataclass(frozen=True)
class BytesValue(Value):
    value: bytes

    def to_python(self) -> bytes:
        return self.value


@dataclass(frozen=True)
class StringValue(Value):
    value: str

    def to_python(self) -> str:
        return self.value


@dataclass(frozen=True)
class FixedArrayValue(Value):
    items: tuple[Value, ...]

    def to_python(self) -> List[Any]:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class ArrayValue(Value):
    items: tuple[Value, ...]

    def to_python(self) -> List[Any]:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class TupleValue(Value):
    fields: tuple[tuple[str, Value], ...]

    @property
    def values(self) -> List[Value]:
        return [value for _, value in self.fields]

    def to_python(self) -> Any:
        # Named structs become dicts; anonymous or partially named tuples stay positional.
        names = [name for name, _ in self.fields]
        if names and all(names) and len(set(names)) == len(names):
            return {name: value.to_python() for name, value in self.fields}
        return [value.to_python() for _, value in self.fields]


@dataclass(frozen=True)
class TopicHash(Value):
    """Keccak-256 digest standing in for an indexed reference-type event argument.

    The original value cannot be recovered from a log; this is never equal to
    a decoded value of the declared type.
    """

    digest: bytes
    type: AbiType

    def to_python(self) -> Dict[str, str]:
        return {"topic_hash": "0x" + self.digest.hex(), "type": self.type.canonical()}


# -- coercion -----------------------------------------------------------------
_EXPECTED_VALUE = {
    Uint: UintValue,
    Int: IntValue,
    Address: AddressValue,
    Bool: BoolValue,
    FixedBytes: FixedBytesValue,
    Bytes: BytesValue,
    String: StringValue,
    FixedArray: FixedArrayValue,
    Array: ArrayValue,
    Tuple: TupleValue,
}


def _as_bytes(obj: Any, typ: AbiType, path: str) -> bytes:
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj)
    if isinstance(obj, str) and is_hex(obj) and len(remove_0x_prefix(obj)) % 2 == 0:
        return decode_hex(obj)
    raise EncodeError("expected bytes or a hex string", path=path, expected=typ.canonical(), found=type(obj).__name__)


def _check_int(value: int, typ: AbiType, path: str) -> None:
    if isinstance(typ, Uint):
        low, high = 0, (1 << typ.bits) - 1
    else:
        low, high = -(1 << (typ.bits - 1)), (1 << (typ.bits - 1)) - 1
    if not low <= value <= high:
        raise EncodeError(
            f"integer {value} out of range for {typ.canonical()}",
            path=path,
            expected=f"[{low}, {high}]",
            found=value,
        )


def _check_text(text: str, path: str) -> None:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise EncodeError(
            f"string is not encodable as UTF-8: {exc.reason}",
            path=path,
            expected="valid UTF-8 text",
            found=repr(text[exc.start : exc.end]),
        ) from None


def _check_value(typ: AbiType, value: Value, path: str) -> Value:
    expected = _EXPECTED_VALUE[type(typ)]
    if not isinstance(value, expected):
        raise EncodeError(
            f"{type(value).__name__} does not match {typ.canonical()}",
            path=path,
            expected=expected.__name__,
            found=type(value).__name__,
        )
    if isinstance(value, (UintValue, IntValue)):
        _check_int(value.value, typ, path)
        if value.bits != typ.bits:
            return type(value)(value.value, typ.bits)
    elif isinstance(value, AddressValue) and len(value.raw) != 20:
        raise EncodeError("address must be 20 bytes", path=path, expected=20, found=len(value.raw))
    elif isinstance(value, FixedBytesValue) and len(value.value) != typ.size:
        raise EncodeError(
            f"expected exactly {typ.size} bytes", path=path, expected=typ.size, found=len(value.value)
        )
    elif isinstance(value, StringValue):
        _check_text(value.value, path)
    elif isinstance(value, (FixedArrayValue, ArrayValue)):
        return coerce(typ, list(value.items), path)
    elif isinstance(value, TupleValue):
        return coerce(typ, value.values, path)
    return value


def coerce(typ: AbiType, obj: Any, path: str = "value") -> Value:
    """Return the :class:`Value` of shape ``typ`` described by ``obj``.

    ``obj`` may already be a :class:`Value` (checked against ``typ``) or plain
    Python data: ints, bools, hex strings or bytes, str, and lists, tuples or
    dicts for compound types.
    """

    if isinstance(obj, TopicHash):
        raise EncodeError("a topic hash cannot be re-encoded as its original value", path=path)
    if isinstance(obj, Value):
        return _check_value(typ, obj, path)

    if isinstance(typ, (Uint, Int)):
        if isinstance(obj, bool) or not isinstance(obj, int):
            raise EncodeError("expected an integer", path=path, expected=typ.canonical(), found=type(obj).__name__)
        _check_int(obj, typ, path)
        return UintValue(obj, typ.bits) if isinstance(typ, Uint) else IntValue(obj, typ.bits)

    if isinstance(typ, Bool):
        if not isinstance(obj, bool):
            raise EncodeError("expected a bool", path=path, expected="bool", found=type(obj).__name__)
        return BoolValue(obj)

    if isinstance(typ, Address):
        raw = _as_bytes(obj, typ, path)
        if len(raw) != 20:
            raise EncodeError("address must be 20 bytes", path=path, expected=20, found=len(raw))
        if isinstance(obj, str):
            digits = remove_0x_prefix(obj)
            if digits != digits.lower() and digits != digits.upper() and not is_checksum_address("0x" + digits):
                raise EncodeError("address checksum mismatch", path=path, expected=to_checksum_address(raw), found=obj)
        return AddressValue(raw)

    if isinstance(typ, FixedBytes):
        raw = _as_bytes(obj, typ, path)
        if len(raw) != typ.size:
            raise EncodeError(f"expected exactly {typ.size} bytes", path=path, expected=typ.size, found=len(raw))
        return FixedBytesValue(raw)

    if isinstance(typ, Bytes):
        return BytesValue(_as_bytes(obj, typ, path))

    if isinstance(typ, String):
        if not isinstance(obj, str):
            raise EncodeError("expected a str", path=path, expected="string", found=type(obj).__name__)
        _check_text(obj, path)
        return StringValue(obj)

    if isinstance(typ, (FixedArray, Array)):
        if isinstance(obj, (str, bytes, bytearray, Mapping)) or not isinstance(obj, Sequence):
            raise EncodeError("expected a list", path=path, expected=typ.canonical(), found=type(obj).__name__)
        if isinstance(typ, FixedArray) and len(obj) != typ.length:
            raise EncodeError(
                f"expected {typ.length} elements", path=path, expected=typ.length, found=len(obj)
            )
        items = tuple(coerce(typ.elem, item, f"{path}[{index}]") for index, item in enumerate(obj))
        return FixedArrayValue(items) if isinstance(typ, FixedArray) else ArrayValue(items)

    if isinstance(typ, Tuple):
        return _coerce_tuple(typ, obj, path)

    raise EncodeError(f"unsupported type {typ!r}", path=path)


def _coerce_tuple(typ: Tuple, obj: Any, path: str) -> TupleValue:
    if isinstance(obj, Mapping):
        missing = [name for name in typ.names if name not in obj]
        if not all(typ.names) or missing:
            raise EncodeError(
                "mapping does not name every tuple field",
                path=path,
                expected=typ.names,
                found=sorted(obj),
            )
        items: Sequence[Any] = [obj[name] for name in typ.names]
    elif isinstance(obj, (str, bytes, bytearray)) or not isinstance(obj, Sequence):
        raise EncodeError("expected a tuple, list or dict", path=path, expected=typ.canonical(), found=type(obj).__name__)
    else:
        items = obj
    if len(items) != len(typ.fields):
        raise EncodeError(
            f"expected {len(typ.fields)} tuple fields", path=path, expected=len(typ.fields), found=len(items)
        )
    fields = []
    for index, ((name, field_type), item) in enumerate(zip(typ.fields, items)):
        label = f"{path}.{name}" if name else f"{path}[{index}]"
        fields.append((name, coerce(field_type, item, label)))
    return TupleValue(tuple(fields))


__all__ = [
    "AddressValue",
    "ArrayValue",
    "BoolValue",
    "BytesValue",
    "FixedArrayValue",
    "FixedBytesValue",
    "IntValue",
    "StringValue",
    "TopicHash",
    "TupleValue",
    "UintValue",
    "Value",
    "coerce",
]
